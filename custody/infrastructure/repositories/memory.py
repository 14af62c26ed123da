# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Process-local repositories backed by lock-guarded dictionaries."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import datetime
from threading import Lock

from custody.domain.ledger import Account, AccountRepository
from custody.domain.users import (
    SessionToken,
    SessionTokenRepository,
    User,
    UserAlreadyExistsError,
    UserRepository,
)
from custody.shared.logging import logger


class InMemoryStore:
    """State shared by the in-memory repositories of one container."""

    def __init__(self) -> None:
        self.lock = Lock()
        self.users: dict[str, User] = {}
        self.accounts: dict[str, Account] = {}
        self.accounts_by_owner: dict[str, str] = {}
        self.tokens: dict[str, SessionToken] = {}


class InMemoryUserRepository(UserRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def find_by_id(self, user_id: str) -> User | None:
        with self._store.lock:
            return self._store.users.get(user_id)

    def add_with_account(self, user: User, account: Account) -> None:
        with self._store.lock:
            if user.id in self._store.users or account.owner in self._store.accounts_by_owner:
                raise UserAlreadyExistsError()
            self._store.users[user.id] = user
            try:
                self._insert_account(account)
            except Exception:
                del self._store.users[user.id]
                logger.warning(f"users.add_with_account: rolled back user={user.id}")
                raise

    def _insert_account(self, account: Account) -> None:
        if account.id in self._store.accounts:
            raise UserAlreadyExistsError()
        self._store.accounts[account.id] = dataclasses.replace(account)
        self._store.accounts_by_owner[account.owner] = account.id


class InMemoryAccountRepository(AccountRepository):
    def __init__(self, store: InMemoryStore, seed: Mapping[str, int] | None = None) -> None:
        self._store = store
        for account_id, balance in (seed or {}).items():
            with store.lock:
                store.accounts[account_id] = Account(
                    id=account_id, owner=account_id, balance=balance
                )
                store.accounts_by_owner[account_id] = account_id
        if seed:
            logger.info(f"accounts.memory: seeded {len(seed)} accounts")

    def get(self, account_id: str) -> Account | None:
        with self._store.lock:
            account = self._store.accounts.get(account_id)
            return dataclasses.replace(account) if account else None

    def find_by_owner(self, owner: str) -> Account | None:
        with self._store.lock:
            account_id = self._store.accounts_by_owner.get(owner)
            if account_id is None:
                return None
            return dataclasses.replace(self._store.accounts[account_id])

    def compare_and_set_balance(self, account_id: str, expected: int, new: int) -> bool:
        with self._store.lock:
            account = self._store.accounts.get(account_id)
            if account is None or account.balance != expected:
                return False
            account.balance = new
            return True


class InMemorySessionTokenRepository(SessionTokenRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def add(self, token: SessionToken) -> None:
        with self._store.lock:
            self._store.tokens[token.value] = token

    def get(self, value: str) -> SessionToken | None:
        with self._store.lock:
            return self._store.tokens.get(value)

    def delete(self, value: str) -> None:
        with self._store.lock:
            self._store.tokens.pop(value, None)

    def delete_expired(self, now: datetime) -> int:
        with self._store.lock:
            expired = [
                value for value, token in self._store.tokens.items() if token.expires_at <= now
            ]
            for value in expired:
                del self._store.tokens[value]
            return len(expired)


__all__ = [
    "InMemoryAccountRepository",
    "InMemorySessionTokenRepository",
    "InMemoryStore",
    "InMemoryUserRepository",
]
