# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from functools import wraps

from flask import Request, g, request

from custody.application import SessionAuthenticator
from custody.domain.users import UnauthorizedError
from custody.shared.logging import logger

AUTH_COOKIE = "auth_token"


def extract_token(req: Request) -> str:
    """Bearer header first, then the ``auth_token`` cookie."""

    auth = req.headers.get("Authorization", "")
    token = ""
    if auth.startswith("Bearer "):
        token = auth[7:].strip()
    if not token:
        token = req.cookies.get(AUTH_COOKIE, "")
    return token


def auth_required(authenticator: SessionAuthenticator):
    def decorator(f):
        @wraps(f)
        def inner(*a, **kw):
            token = extract_token(request)
            if not token:
                logger.warning(
                    f"No Authorization header/cookie on {request.method} {request.path} "
                    f"from {request.headers.get('X-Forwarded-For', request.remote_addr)}"
                )
                raise UnauthorizedError()

            try:
                g.user_id = authenticator.validate(token)
            except UnauthorizedError:
                logger.warning(
                    f"Auth failed (token unknown/expired) on {request.method} {request.path}"
                )
                raise

            logger.debug(f"Auth OK: user={g.user_id} {request.method} {request.path}")
            return f(*a, **kw)

        return inner

    return decorator


__all__ = ["AUTH_COOKIE", "auth_required", "extract_token"]
