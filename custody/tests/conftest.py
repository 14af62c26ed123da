from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from custody.application import Ledger, SessionAuthenticator, StatefulTokenStrategy
from custody.domain.users import PasswordHasher
from custody.infrastructure.auth.login_attempts import LoginAttemptsTracker
from custody.infrastructure.db import Database
from custody.infrastructure.repositories.memory import (
    InMemoryAccountRepository,
    InMemorySessionTokenRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from custody.shared.config import AppConfig, DatabaseConfig, LedgerConfig, SecurityConfig
from custody.shared.utils.clock import utc_now


class DeterministicHasher(PasswordHasher):
    def __init__(self) -> None:
        self.verify_calls = 0

    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, hashed: str) -> bool:
        self.verify_calls += 1
        return hashed == f"hashed:{password}"


class FakeClock:
    """Starts at the real current time so JWT ``iat``/``nbf`` checks still pass."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or utc_now()

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def hasher() -> DeterministicHasher:
    return DeterministicHasher()


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def accounts(store: InMemoryStore) -> InMemoryAccountRepository:
    return InMemoryAccountRepository(store, seed={"a1": 0, "a2": 500})


@pytest.fixture()
def ledger(accounts: InMemoryAccountRepository) -> Ledger:
    return Ledger(accounts=accounts)


@pytest.fixture()
def throttle() -> LoginAttemptsTracker:
    return LoginAttemptsTracker(max_attempts=5, lockout_duration=900, attempt_window=3600)


@pytest.fixture()
def authenticator(
    store: InMemoryStore,
    hasher: DeterministicHasher,
    clock: FakeClock,
    throttle: LoginAttemptsTracker,
) -> SessionAuthenticator:
    return SessionAuthenticator(
        users=InMemoryUserRepository(store),
        tokens=StatefulTokenStrategy(InMemorySessionTokenRepository(store)),
        password_hasher=hasher,
        throttle=throttle,
        clock=clock,
    )


@pytest.fixture()
def database(tmp_path: Path) -> Iterator[Database]:
    db = Database(DatabaseConfig(DATABASE_URL=f"sqlite:///{tmp_path / 'custody.db'}"))
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture()
def memory_config() -> AppConfig:
    return AppConfig(
        APP_ENV="test",
        SECRET_KEY="test-secret-key-0123456789abcdefghij",
        STORAGE_BACKEND="memory",
        ledger=LedgerConfig(LEDGER_SEED_ACCOUNTS=""),
        security=SecurityConfig(ENABLE_RATE_LIMIT=False),
    )


@pytest.fixture()
def sql_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        APP_ENV="test",
        SECRET_KEY="test-secret-key-0123456789abcdefghij",
        STORAGE_BACKEND="sqlalchemy",
        database=DatabaseConfig(DATABASE_URL=f"sqlite:///{tmp_path / 'api.db'}"),
        security=SecurityConfig(ENABLE_RATE_LIMIT=False),
    )
