# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Credential verification and session token lifecycle."""

from __future__ import annotations

import secrets
import uuid
from datetime import timedelta
from functools import cached_property

from custody.domain.ledger.entities import Account
from custody.domain.users.entities import SessionToken, User
from custody.domain.users.exceptions import (
    AccountLockedError,
    InvalidCredentialsError,
    InvalidInputError,
    UnauthorizedError,
)
from custody.domain.users.repositories import (
    LoginThrottle,
    PasswordHasher,
    TokenStrategy,
    UserRepository,
)
from custody.shared.logging import logger
from custody.shared.utils.clock import Clock, utc_now

DEFAULT_TOKEN_TTL = timedelta(hours=24)
MAX_USER_ID_LENGTH = 64
MAX_SECRET_LENGTH = 128
MAX_TOKEN_LENGTH = 2048


class SessionAuthenticator:
    def __init__(
        self,
        *,
        users: UserRepository,
        tokens: TokenStrategy,
        password_hasher: PasswordHasher,
        throttle: LoginThrottle | None = None,
        token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        clock: Clock = utc_now,
    ) -> None:
        self._users = users
        self._tokens = tokens
        self._password_hasher = password_hasher
        self._throttle = throttle
        self._token_ttl = token_ttl
        self._clock = clock

    def register(self, user_id: str, secret: str) -> User:
        user_id = _require_text("user_id", user_id, MAX_USER_ID_LENGTH, strip=True)
        secret = _require_text("secret", secret, MAX_SECRET_LENGTH)

        user = User(
            id=user_id,
            password_hash=self._password_hasher.hash(secret),
            created_at=self._clock(),
        )
        account = Account(id=uuid.uuid4().hex, owner=user_id, balance=0)
        self._users.add_with_account(user, account)
        logger.info(f"auth.register: ok user={user_id} account={account.id}")
        return user

    def login(self, user_id: str, secret: str, ip_address: str | None = None) -> SessionToken:
        if self._throttle and user_id and self._throttle.is_locked(user_id):
            remaining = self._throttle.get_lockout_remaining(user_id)
            raise AccountLockedError(lockout_remaining=remaining)

        user = self._users.find_by_id(user_id) if _is_text(user_id, MAX_USER_ID_LENGTH) else None
        secret_ok = _is_text(secret, MAX_SECRET_LENGTH)
        # exactly one verify per attempt, whatever the id or secret
        hash_matches = self._password_hasher.verify(
            secret if secret_ok else "",
            user.password_hash if user is not None else self._dummy_hash,
        )
        password_valid = secret_ok and user is not None and hash_matches

        if self._throttle and user_id:
            self._throttle.record_attempt(user_id, success=password_valid, ip_address=ip_address)

        if not password_valid or user is None:
            logger.info(f"auth.login: rejected user={user_id!r}")
            raise InvalidCredentialsError()

        issued_at = self._clock()
        token = self._tokens.issue(user.id, issued_at, issued_at + self._token_ttl)
        logger.info(
            f"auth.login: ok user={user.id} exp={token.expires_at.isoformat()} "
            f"tok={token.value[:8]}…"
        )
        return token

    def validate(self, token: str | None) -> str:
        if not _is_text(token, MAX_TOKEN_LENGTH):
            raise UnauthorizedError()

        session = self._tokens.resolve(token)
        if session is None:
            raise UnauthorizedError()
        if not session.is_valid_at(self._clock()):
            self._tokens.revoke(token)
            logger.debug(f"auth.validate: expired token for user={session.owner} collected")
            raise UnauthorizedError()
        return session.owner

    def revoke(self, token: str | None) -> None:
        if not _is_text(token, MAX_TOKEN_LENGTH):
            return
        self._tokens.revoke(token)
        logger.debug("auth.revoke: token removed")

    def sweep_expired(self) -> int:
        removed = self._tokens.sweep(self._clock())
        if removed:
            logger.info(f"auth.sweep: removed {removed} expired tokens")
        return removed

    @cached_property
    def _dummy_hash(self) -> str:
        return self._password_hasher.hash(secrets.token_urlsafe(16))


def _is_text(value: object, max_length: int) -> bool:
    return isinstance(value, str) and 0 < len(value) <= max_length


def _require_text(field: str, value: object, max_length: int, *, strip: bool = False) -> str:
    if not isinstance(value, str):
        raise InvalidInputError(field)
    if strip:
        value = value.strip()
    if not _is_text(value, max_length):
        raise InvalidInputError(field)
    return value


__all__ = ["SessionAuthenticator"]
