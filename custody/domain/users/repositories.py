# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from custody.domain.ledger.entities import Account

from .entities import SessionToken, User


class UserRepository(Protocol):
    def find_by_id(self, user_id: str) -> User | None: ...

    def add_with_account(self, user: User, account: Account) -> None:
        """Persist both records or neither; ``UserAlreadyExistsError`` on a taken id."""
        ...


class SessionTokenRepository(Protocol):
    def add(self, token: SessionToken) -> None: ...
    def get(self, value: str) -> SessionToken | None: ...
    def delete(self, value: str) -> None: ...
    def delete_expired(self, now: datetime) -> int: ...


class TokenStrategy(Protocol):
    def issue(self, owner: str, issued_at: datetime, expires_at: datetime) -> SessionToken: ...
    def resolve(self, value: str) -> SessionToken | None: ...
    def revoke(self, value: str) -> None: ...
    def sweep(self, now: datetime) -> int: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...


class LoginThrottle(Protocol):
    def is_locked(self, username: str) -> bool: ...
    def get_lockout_remaining(self, username: str) -> float: ...

    def record_attempt(
        self, username: str, success: bool, ip_address: str | None = None
    ) -> None: ...
