# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from custody.domain.ledger import Account as DomainAccount
from custody.domain.users import SessionToken as DomainSessionToken
from custody.domain.users import SessionTokenRepository, UserAlreadyExistsError, UserRepository
from custody.domain.users import User as DomainUser
from custody.infrastructure.db.models import Account, SessionToken, User
from custody.infrastructure.unit_of_work import unit_of_work_scope
from custody.shared.logging import logger
from custody.shared.utils.clock import ensure_utc


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def find_by_id(self, user_id: str) -> DomainUser | None:
        with unit_of_work_scope(self._session_factory, "users.find_by_id") as session:
            row = session.get(User, user_id)
            if not row:
                return None
            return DomainUser(
                id=row.id,
                password_hash=row.password_hash,
                created_at=ensure_utc(row.created_at),
            )

    def add_with_account(self, user: DomainUser, account: DomainAccount) -> None:
        try:
            with unit_of_work_scope(self._session_factory, "users.add_with_account") as session:
                session.add(
                    User(id=user.id, password_hash=user.password_hash, created_at=user.created_at)
                )
                session.add(
                    Account(
                        id=account.id,
                        owner=account.owner,
                        balance=account.balance,
                        created_at=user.created_at,
                        updated_at=user.created_at,
                    )
                )
                session.flush()
        except IntegrityError as exc:
            logger.info(f"users.add_with_account: conflict user={user.id}")
            raise UserAlreadyExistsError() from exc


def _token_to_domain(row: SessionToken) -> DomainSessionToken:
    return DomainSessionToken(
        value=row.token,
        owner=row.user_id,
        issued_at=ensure_utc(row.issued_at),
        expires_at=ensure_utc(row.expires_at),
    )


class SqlAlchemySessionTokenRepository(SessionTokenRepository):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def add(self, token: DomainSessionToken) -> None:
        with unit_of_work_scope(self._session_factory, "tokens.add") as session:
            session.add(
                SessionToken(
                    user_id=token.owner,
                    token=token.value,
                    issued_at=ensure_utc(token.issued_at),
                    expires_at=ensure_utc(token.expires_at),
                )
            )

    def get(self, value: str) -> DomainSessionToken | None:
        with unit_of_work_scope(self._session_factory, "tokens.get") as session:
            row = session.query(SessionToken).filter(SessionToken.token == value).first()
            return _token_to_domain(row) if row else None

    def delete(self, value: str) -> None:
        with unit_of_work_scope(self._session_factory, "tokens.delete") as session:
            session.query(SessionToken).filter(SessionToken.token == value).delete()

    def delete_expired(self, now: datetime) -> int:
        with unit_of_work_scope(self._session_factory, "tokens.delete_expired") as session:
            return (
                session.query(SessionToken)
                .filter(SessionToken.expires_at <= ensure_utc(now))
                .delete(synchronize_session=False)
            )


__all__ = ["SqlAlchemySessionTokenRepository", "SqlAlchemyUserRepository"]
