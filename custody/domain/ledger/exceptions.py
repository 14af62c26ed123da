# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from custody.shared.errors.base import DomainError


class InvalidAmountError(DomainError):
    code = "invalid_amount"

    def __init__(self, amount: object = None) -> None:
        super().__init__(
            status=HTTPStatus.BAD_REQUEST,
            context={"amount": amount} if isinstance(amount, int) else None,
        )


class AccountNotFoundError(DomainError):
    code = "account_not_found"

    def __init__(self, account_id: str | None = None) -> None:
        super().__init__(
            status=HTTPStatus.NOT_FOUND,
            context={"account_id": account_id} if account_id else None,
        )


class InsufficientBalanceError(DomainError):
    code = "insufficient_balance"

    def __init__(self, *, balance: int, required: int) -> None:
        super().__init__(
            status=HTTPStatus.CONFLICT,
            context={"balance": balance, "required": required},
        )
