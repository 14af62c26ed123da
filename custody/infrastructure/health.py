# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from custody.infrastructure.db import Database
from custody.shared.logging import logger


def check_database(database: Database | None) -> str:
    """``ok``/``unavailable`` for SQL storage, ``memory`` without a database."""

    if database is None:
        return "memory"
    try:
        database.check()
    except SQLAlchemyError as exc:
        logger.warning(f"health: database check failed ({type(exc).__name__})")
        return "unavailable"
    return "ok"


__all__ = ["check_database"]
