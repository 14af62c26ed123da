# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Protocol

from .entities import Account


class AccountRepository(Protocol):
    def get(self, account_id: str) -> Account | None: ...
    def find_by_owner(self, owner: str) -> Account | None: ...

    def compare_and_set_balance(self, account_id: str, expected: int, new: int) -> bool:
        """Store ``new`` only if the stored balance still equals ``expected``."""
        ...
