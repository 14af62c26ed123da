# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import MAX_BALANCE, Account, require_positive_amount
from .exceptions import AccountNotFoundError, InsufficientBalanceError, InvalidAmountError
from .repositories import AccountRepository

__all__ = [
    "MAX_BALANCE",
    "Account",
    "AccountNotFoundError",
    "AccountRepository",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "require_positive_amount",
]
