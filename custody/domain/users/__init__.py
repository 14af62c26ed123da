# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import SessionToken, User
from .exceptions import (
    AccountLockedError,
    InvalidCredentialsError,
    InvalidInputError,
    UnauthorizedError,
    UserAlreadyExistsError,
)
from .repositories import (
    LoginThrottle,
    PasswordHasher,
    SessionTokenRepository,
    TokenStrategy,
    UserRepository,
)

__all__ = [
    "AccountLockedError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "LoginThrottle",
    "PasswordHasher",
    "SessionToken",
    "SessionTokenRepository",
    "TokenStrategy",
    "UnauthorizedError",
    "User",
    "UserAlreadyExistsError",
    "UserRepository",
]
