# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .ledger import (
    Account,
    AccountNotFoundError,
    InsufficientBalanceError,
    InvalidAmountError,
)
from .users import (
    AccountLockedError,
    InvalidCredentialsError,
    InvalidInputError,
    SessionToken,
    UnauthorizedError,
    User,
    UserAlreadyExistsError,
)

__all__ = [
    "Account",
    "AccountLockedError",
    "AccountNotFoundError",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "SessionToken",
    "UnauthorizedError",
    "User",
    "UserAlreadyExistsError",
]
