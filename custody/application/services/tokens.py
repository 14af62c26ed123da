# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Session token strategies.

``StatefulTokenStrategy`` keeps opaque random values in a repository and can
revoke immediately. ``StatelessTokenStrategy`` signs the owner and expiry into
a JWT and needs no storage, at the price of tokens that cannot be revoked
before they expire.
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime

import jwt

from custody.domain.users.entities import SessionToken
from custody.domain.users.repositories import SessionTokenRepository, TokenStrategy
from custody.shared.logging import logger

ALGO = "HS256"


class StatefulTokenStrategy(TokenStrategy):
    def __init__(self, repository: SessionTokenRepository) -> None:
        self._tokens = repository

    def issue(self, owner: str, issued_at: datetime, expires_at: datetime) -> SessionToken:
        token = SessionToken(
            value=secrets.token_urlsafe(48),
            owner=owner,
            issued_at=issued_at,
            expires_at=expires_at,
        )
        self._tokens.add(token)
        return token

    def resolve(self, value: str) -> SessionToken | None:
        return self._tokens.get(value)

    def revoke(self, value: str) -> None:
        self._tokens.delete(value)

    def sweep(self, now: datetime) -> int:
        return self._tokens.delete_expired(now)


class StatelessTokenStrategy(TokenStrategy):
    def __init__(self, *, secret: str, issuer: str) -> None:
        self._secret = secret
        self._issuer = issuer

    def issue(self, owner: str, issued_at: datetime, expires_at: datetime) -> SessionToken:
        payload = {
            "iss": self._issuer,
            "sub": owner,
            "iat": int(issued_at.timestamp()),
            "nbf": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            # keeps two tokens minted in the same second distinct
            "jti": secrets.token_urlsafe(12),
        }
        value = jwt.encode(payload, self._secret, algorithm=ALGO)
        return SessionToken(
            value=value,
            owner=owner,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )

    def resolve(self, value: str) -> SessionToken | None:
        try:
            claims = jwt.decode(
                value,
                self._secret,
                algorithms=[ALGO],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "iss", "sub"]},
            )
        except jwt.PyJWTError as exc:
            logger.debug(f"tokens.stateless: rejected ({type(exc).__name__})")
            return None
        return SessionToken(
            value=value,
            owner=str(claims["sub"]),
            issued_at=datetime.fromtimestamp(int(claims["iat"]), UTC),
            expires_at=datetime.fromtimestamp(int(claims["exp"]), UTC),
        )

    def revoke(self, value: str) -> None:
        logger.debug("tokens.stateless: revoke is a no-op, token lives until expiry")

    def sweep(self, now: datetime) -> int:
        return 0


__all__ = ["StatefulTokenStrategy", "StatelessTokenStrategy"]
