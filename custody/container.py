# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Application dependency container."""

from __future__ import annotations

from datetime import timedelta
from functools import cached_property

from custody.application import (
    AccountLocks,
    Ledger,
    SessionAuthenticator,
    StatefulTokenStrategy,
    StatelessTokenStrategy,
    WerkzeugPasswordHasher,
)
from custody.domain.ledger import AccountRepository
from custody.domain.users import SessionTokenRepository, TokenStrategy, UserRepository
from custody.infrastructure.audit import AuditLogger
from custody.infrastructure.auth.login_attempts import LoginAttemptsTracker
from custody.infrastructure.db import Database
from custody.infrastructure.repositories.memory import (
    InMemoryAccountRepository,
    InMemorySessionTokenRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from custody.infrastructure.repositories.sqlalchemy import SqlAlchemyAccountRepository
from custody.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemySessionTokenRepository,
    SqlAlchemyUserRepository,
)
from custody.infrastructure.token_sweeper import TokenSweeper
from custody.interfaces.http.controllers.account_controller import AccountController
from custody.interfaces.http.controllers.auth_controller import AuthController
from custody.interfaces.http.controllers.misc_controller import MiscController
from custody.shared.config import AppConfig
from custody.shared.middleware.rate_limit import InMemoryRateLimiter


class Container:
    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @property
    def uses_database(self) -> bool:
        return self.config.storage_backend == "sqlalchemy"

    @cached_property
    def database(self) -> Database | None:
        if not self.uses_database:
            return None
        return Database(self.config.database)

    @cached_property
    def memory_store(self) -> InMemoryStore:
        return InMemoryStore()

    @cached_property
    def user_repository(self) -> UserRepository:
        if self.database is not None:
            return SqlAlchemyUserRepository(self.database.session_factory)
        return InMemoryUserRepository(self.memory_store)

    @cached_property
    def account_repository(self) -> AccountRepository:
        if self.database is not None:
            return SqlAlchemyAccountRepository(self.database.session_factory)
        return InMemoryAccountRepository(self.memory_store, seed=self.config.ledger.seed_accounts)

    @cached_property
    def session_token_repository(self) -> SessionTokenRepository:
        if self.database is not None:
            return SqlAlchemySessionTokenRepository(self.database.session_factory)
        return InMemorySessionTokenRepository(self.memory_store)

    @cached_property
    def password_hasher(self) -> WerkzeugPasswordHasher:
        return WerkzeugPasswordHasher(self.config.auth.password_hash_method)

    @cached_property
    def token_strategy(self) -> TokenStrategy:
        if self.config.auth.token_strategy == "stateless":
            return StatelessTokenStrategy(
                secret=self.config.secret_key, issuer=self.config.auth.jwt_issuer
            )
        return StatefulTokenStrategy(self.session_token_repository)

    @cached_property
    def login_throttle(self) -> LoginAttemptsTracker:
        auth = self.config.auth
        return LoginAttemptsTracker(
            max_attempts=auth.login_max_attempts,
            lockout_duration=auth.login_lockout_seconds,
            attempt_window=auth.login_attempt_window_seconds,
        )

    @cached_property
    def authenticator(self) -> SessionAuthenticator:
        return SessionAuthenticator(
            users=self.user_repository,
            tokens=self.token_strategy,
            password_hasher=self.password_hasher,
            throttle=self.login_throttle,
            token_ttl=timedelta(seconds=self.config.auth.token_ttl_seconds),
        )

    @cached_property
    def ledger(self) -> Ledger:
        return Ledger(
            accounts=self.account_repository,
            locks=AccountLocks(),
            max_cas_retries=self.config.ledger.max_cas_retries,
        )

    @cached_property
    def audit(self) -> AuditLogger:
        return AuditLogger(self.database.session_factory if self.database else None)

    @cached_property
    def rate_limiter(self) -> InMemoryRateLimiter | None:
        security = self.config.security
        if not security.enable_rate_limit:
            return None
        return InMemoryRateLimiter(security.rate_limit_requests, security.rate_limit_window)

    @cached_property
    def token_sweeper(self) -> TokenSweeper:
        return TokenSweeper(
            self.authenticator.sweep_expired,
            interval=self.config.auth.sweep_interval_seconds,
        )

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            authenticator=self.authenticator,
            audit=self.audit,
            security=self.config.security,
            token_ttl_seconds=self.config.auth.token_ttl_seconds,
            limiter=self.rate_limiter,
        )

    @cached_property
    def account_controller(self) -> AccountController:
        return AccountController(
            ledger=self.ledger,
            authenticator=self.authenticator,
            audit=self.audit,
        )

    @cached_property
    def misc_controller(self) -> MiscController:
        return MiscController(self.database)

    def init_storage(self) -> None:
        if self.database is not None:
            self.database.init_db()
        else:
            # seeds memory accounts eagerly
            _ = self.account_repository

    def shutdown(self) -> None:
        self.token_sweeper.stop(timeout=self.config.server.shutdown_timeout)
        if self.database is not None:
            self.database.dispose()


__all__ = ["Container"]
