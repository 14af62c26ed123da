# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from custody.infrastructure.db.models import AuditLog
from custody.shared.logging import logger


class AuditAction(str, Enum):
    # Authentication
    REGISTER = "register"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGIN_LOCKED = "login_locked"
    LOGOUT = "logout"

    # Ledger
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    WITHDRAW_REJECTED = "withdraw_rejected"


class AuditLogger:
    """Writes audit events to the log and, when a session factory is given, to ``audit_logs``."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory

    def log(
        self,
        action: AuditAction,
        user_id: str | None = None,
        ip_address: str | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
    ) -> None:
        timestamp = datetime.now(UTC)
        safe_details = _sanitize_details(details) if details else {}

        log_message = (
            f"AUDIT: {action.value} | "
            f"user_id={user_id} | "
            f"ip={ip_address} | "
            f"success={success}"
        )
        if safe_details:
            log_message += f" | details={safe_details}"

        if success:
            logger.info(log_message)
        else:
            logger.warning(log_message)

        if self._session_factory is not None:
            self._store(
                self._session_factory,
                timestamp=timestamp,
                action=action.value,
                user_id=user_id,
                ip_address=ip_address,
                success=success,
                details=safe_details,
            )

    def _store(
        self,
        session_factory: Callable[[], Session],
        *,
        timestamp: datetime,
        action: str,
        user_id: str | None,
        ip_address: str | None,
        success: bool,
        details: dict[str, Any],
    ) -> None:
        db = session_factory()
        try:
            db.add(
                AuditLog(
                    timestamp=timestamp,
                    action=action,
                    user_id=user_id,
                    ip_address=ip_address,
                    success=success,
                    details_json=json.dumps(details) if details else None,
                )
            )
            db.commit()
        except SQLAlchemyError as db_error:
            db.rollback()
            logger.warning(f"Failed to store audit log in database: {db_error}")
        finally:
            db.close()


def _sanitize_details(details: dict[str, Any]) -> dict[str, Any]:
    sensitive_keys = {"password", "token", "secret", "key", "hash"}

    sanitized = {}
    for key, value in details.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in sensitive_keys):
            sanitized[key] = "***REDACTED***"
        else:
            sanitized[key] = value
    return sanitized


__all__ = ["AuditAction", "AuditLogger"]
