# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Account ledger: atomic deposit, withdraw and balance reads."""

from __future__ import annotations

from collections.abc import Callable

from custody.domain.ledger.entities import Account, require_positive_amount
from custody.domain.ledger.exceptions import AccountNotFoundError
from custody.domain.ledger.repositories import AccountRepository
from custody.shared.errors.base import StorageUnavailableError
from custody.shared.logging import logger

from .account_locks import AccountLocks


class Ledger:
    """Owns every balance mutation.

    Mutations on one account run under that account's lock and are written back
    with a compare-and-set, so a concurrent writer in another process is
    detected instead of overwritten. A lost compare-and-set applied nothing and
    is retried from a fresh read, at most ``max_cas_retries`` times.
    """

    def __init__(
        self,
        *,
        accounts: AccountRepository,
        locks: AccountLocks | None = None,
        max_cas_retries: int = 5,
    ) -> None:
        self._accounts = accounts
        self._locks = locks or AccountLocks()
        self._max_cas_retries = max_cas_retries

    def deposit(self, account_id: str, amount: int) -> int:
        amount = require_positive_amount(amount)
        balance = self._mutate(account_id, lambda account: account.deposit(amount))
        logger.info(f"ledger.deposit: ok account={account_id} amount={amount} balance={balance}")
        return balance

    def withdraw(self, account_id: str, amount: int) -> int:
        amount = require_positive_amount(amount)
        balance = self._mutate(account_id, lambda account: account.withdraw(amount))
        logger.info(f"ledger.withdraw: ok account={account_id} amount={amount} balance={balance}")
        return balance

    def get_balance(self, account_id: str) -> int:
        return self._load(account_id).balance

    def account_for_owner(self, owner: str) -> Account:
        account = self._accounts.find_by_owner(owner)
        if account is None:
            raise AccountNotFoundError()
        return account

    def _load(self, account_id: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def _mutate(self, account_id: str, operation: Callable[[Account], int]) -> int:
        with self._locks.hold(account_id):
            for attempt in range(self._max_cas_retries + 1):
                account = self._load(account_id)
                expected = account.balance
                new_balance = operation(account)
                if self._accounts.compare_and_set_balance(account_id, expected, new_balance):
                    return new_balance
                logger.warning(
                    f"ledger: balance changed concurrently "
                    f"account={account_id} attempt={attempt + 1}"
                )
        logger.error(
            f"ledger: giving up after {self._max_cas_retries + 1} attempts account={account_id}"
        )
        raise StorageUnavailableError(
            context={"reason": "balance_contention", "account_id": account_id}
        )


__all__ = ["Ledger"]
