# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from custody.shared.errors.base import DomainError


class InvalidInputError(DomainError):
    code = "invalid_input"

    def __init__(self, field: str) -> None:
        super().__init__(status=HTTPStatus.BAD_REQUEST, context={"field": field})


class UserAlreadyExistsError(DomainError):
    code = "user_already_exists"
    status = HTTPStatus.CONFLICT


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED


class UnauthorizedError(DomainError):
    code = "unauthorized"
    status = HTTPStatus.UNAUTHORIZED


class AccountLockedError(DomainError):
    code = "account_locked"

    def __init__(self, lockout_remaining: float = 0) -> None:
        super().__init__(
            status=HTTPStatus.TOO_MANY_REQUESTS,
            context={"lockout_remaining_seconds": round(lockout_remaining, 1)},
        )
