# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import update
from sqlalchemy.orm import Session

from custody.domain.ledger import Account as DomainAccount
from custody.domain.ledger import AccountRepository
from custody.infrastructure.db.models import Account
from custody.infrastructure.unit_of_work import unit_of_work_scope
from custody.shared.utils.clock import utc_now


def _to_domain(row: Account) -> DomainAccount:
    return DomainAccount(id=row.id, owner=row.owner, balance=int(row.balance))


class SqlAlchemyAccountRepository(AccountRepository):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get(self, account_id: str) -> DomainAccount | None:
        with unit_of_work_scope(self._session_factory, "accounts.get") as session:
            row = session.get(Account, account_id)
            return _to_domain(row) if row else None

    def find_by_owner(self, owner: str) -> DomainAccount | None:
        with unit_of_work_scope(self._session_factory, "accounts.find_by_owner") as session:
            row = session.query(Account).filter(Account.owner == owner).first()
            return _to_domain(row) if row else None

    def compare_and_set_balance(self, account_id: str, expected: int, new: int) -> bool:
        scope = unit_of_work_scope(self._session_factory, "accounts.compare_and_set_balance")
        with scope as session:
            result = session.execute(
                update(Account)
                .where(Account.id == account_id, Account.balance == expected)
                .values(balance=new, updated_at=utc_now())
            )
            return result.rowcount == 1


__all__ = ["SqlAlchemyAccountRepository"]
