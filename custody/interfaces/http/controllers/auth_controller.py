# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request
from pydantic import ValidationError

from custody.application import SessionAuthenticator
from custody.domain.users import AccountLockedError, InvalidCredentialsError, UnauthorizedError
from custody.infrastructure.audit import AuditAction, AuditLogger
from custody.interfaces.http.auth import AUTH_COOKIE, extract_token
from custody.interfaces.http.dto.auth import (
    CredentialsRequestDTO,
    LoginResponseDTO,
    OkDTO,
    RegisterResponseDTO,
)
from custody.shared.config import SecurityConfig
from custody.shared.errors.validation import raise_validation_error
from custody.shared.logging import logger
from custody.shared.middleware.rate_limit import InMemoryRateLimiter, client_ip, rate_limit


def _parse_credentials() -> CredentialsRequestDTO:
    try:
        return CredentialsRequestDTO.model_validate(request.get_json(silent=True) or {})
    except ValidationError as exc:
        raise_validation_error(exc)


class AuthController:
    def __init__(
        self,
        *,
        authenticator: SessionAuthenticator,
        audit: AuditLogger,
        security: SecurityConfig,
        token_ttl_seconds: int,
        limiter: InMemoryRateLimiter | None = None,
    ) -> None:
        self._authenticator = authenticator
        self._audit = audit
        self._security = security
        self._token_ttl_seconds = token_ttl_seconds
        self._limiter = limiter

    def register(self) -> tuple[Response, int]:
        dto = _parse_credentials()

        user = self._authenticator.register(dto.user_id, dto.password)

        self._audit.log(AuditAction.REGISTER, user_id=user.id, ip_address=client_ip(request))
        payload = RegisterResponseDTO(user_id=user.id).model_dump(by_alias=True)
        return jsonify(payload), 201

    def login(self) -> tuple[Response, int]:
        dto = _parse_credentials()
        ip_address = client_ip(request)

        try:
            token = self._authenticator.login(dto.user_id, dto.password, ip_address)
        except AccountLockedError:
            self._audit.log(
                AuditAction.LOGIN_LOCKED,
                ip_address=ip_address,
                details={"user": dto.user_id[:64]},
                success=False,
            )
            raise
        except InvalidCredentialsError:
            self._audit.log(
                AuditAction.LOGIN_FAILED,
                ip_address=ip_address,
                details={"user": dto.user_id[:64]},
                success=False,
            )
            raise

        self._audit.log(AuditAction.LOGIN_SUCCESS, user_id=token.owner, ip_address=ip_address)

        payload = LoginResponseDTO(
            token=token.value,
            expires_at=token.expires_at.isoformat(),
        ).model_dump(by_alias=True)
        response = jsonify(payload)
        response.set_cookie(
            AUTH_COOKIE,
            token.value,
            httponly=True,
            samesite=self._security.cookie_samesite,
            secure=self._security.cookie_secure,
            max_age=self._token_ttl_seconds,
        )
        return response, 200

    def logout(self) -> tuple[Response, int]:
        token = extract_token(request)
        user_id = None
        if token:
            try:
                user_id = self._authenticator.validate(token)
            except UnauthorizedError:
                logger.debug("auth.logout: token already invalid")
            self._authenticator.revoke(token)

        self._audit.log(AuditAction.LOGOUT, user_id=user_id, ip_address=client_ip(request))

        response = jsonify(OkDTO().model_dump())
        response.delete_cookie(AUTH_COOKIE)
        logger.info(f"auth.logout: ok user={user_id}")
        return response, 200

    def as_blueprint(self) -> Blueprint:
        limited = rate_limit(self._limiter)
        bp = Blueprint("auth", __name__, url_prefix="/api/auth")
        bp.add_url_rule("/register", view_func=limited(self.register), methods=["POST"])
        bp.add_url_rule("/login", view_func=limited(self.login), methods=["POST"])
        bp.add_url_rule("/logout", view_func=self.logout, methods=["DELETE"])
        return bp
