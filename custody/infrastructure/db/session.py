# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from custody.shared.config import DatabaseConfig
from custody.shared.logging import logger


class Base(DeclarativeBase):
    pass


def create_db_engine(config: DatabaseConfig) -> Engine:
    connect_args: dict[str, object] = {}
    pool_args: dict[str, object] = {
        "pool_size": config.pool_size,
        "max_overflow": config.max_overflow,
        "pool_timeout": config.pool_timeout,
    }
    if config.url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            "timeout": int(config.pool_timeout),
        }
        if ":memory:" in config.url or config.url.rstrip("/") == "sqlite:":
            # each pooled connection would get its own empty database
            raise ValueError("in-memory SQLite is not supported, use STORAGE_BACKEND=memory")

    return create_engine(
        config.url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
        **pool_args,
    )


class Database:
    """Engine plus session factory, owned by the container."""

    def __init__(self, config: DatabaseConfig) -> None:
        self.engine = create_db_engine(config)
        self.session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    def init_db(self) -> None:
        # models register themselves on Base.metadata when imported
        from custody.infrastructure.db import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ensured")

    def check(self) -> bool:
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        self.engine.dispose()
