# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Account entity and the balance rules it enforces."""

from __future__ import annotations

from dataclasses import dataclass

from .exceptions import InsufficientBalanceError, InvalidAmountError

# width of the signed 64-bit balance column
MAX_BALANCE = 2**63 - 1


def require_positive_amount(amount: object) -> int:
    # bool is an int subclass; True must not deposit 1
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(amount)
    if amount <= 0 or amount > MAX_BALANCE:
        raise InvalidAmountError(amount)
    return amount


@dataclass(slots=True)
class Account:
    """Balance held for a single owner.

    Instances are working copies: the ledger loads one, applies a mutation and
    writes the result back with a compare-and-set, so a rejected mutation never
    reaches storage.
    """

    id: str
    owner: str
    balance: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("account id must not be empty")
        if self.balance < 0:
            raise ValueError("account balance must not be negative")

    def deposit(self, amount: int) -> int:
        amount = require_positive_amount(amount)
        if self.balance + amount > MAX_BALANCE:
            raise InvalidAmountError(amount)
        self.balance += amount
        return self.balance

    def withdraw(self, amount: int) -> int:
        amount = require_positive_amount(amount)
        if amount > self.balance:
            raise InsufficientBalanceError(balance=self.balance, required=amount)
        self.balance -= amount
        return self.balance
