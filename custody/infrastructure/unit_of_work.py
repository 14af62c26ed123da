# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Transactional scope for repository operations."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from custody.shared.errors.base import StorageUnavailableError
from custody.shared.logging import logger


@dataclass(slots=True)
class SqlAlchemyUnitOfWork(AbstractContextManager):
    """Commit on success, roll back on any error.

    Driver failures leave as ``StorageUnavailableError`` tagged with
    ``operation``. ``IntegrityError`` is re-raised untouched so repositories can
    map constraint violations to domain errors.
    """

    session_factory: Callable[[], Session]
    operation: str = "unit_of_work"
    _session: Session | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self.session_factory()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        session = self.session
        try:
            if exc is None:
                session.commit()
                logger.debug(f"uow: committed op={self.operation}")
                return
            session.rollback()
            logger.debug(f"uow: rollback op={self.operation} due to {exc_type.__name__}")
        except SQLAlchemyError as finalise_error:
            if exc is None:
                session.rollback()
                exc = finalise_error
            else:
                logger.warning(f"uow: rollback failed op={self.operation}: {finalise_error}")
        finally:
            session.close()
            self._session = None

        if isinstance(exc, SQLAlchemyError) and not isinstance(exc, IntegrityError):
            logger.error(f"storage: {self.operation} failed ({type(exc).__name__}: {exc})")
            raise StorageUnavailableError(context={"operation": self.operation}) from exc
        if exc is not None and exc_type is None:
            # commit itself failed with an IntegrityError
            raise exc

    @property
    def session(self) -> Session:
        if self._session is None:
            msg = "UnitOfWork session accessed before entering context"
            raise RuntimeError(msg)
        return self._session


@contextmanager
def unit_of_work_scope(
    factory: Callable[[], Session], operation: str = "unit_of_work"
) -> Iterator[Session]:
    with SqlAlchemyUnitOfWork(factory, operation) as uow:
        yield uow.session


__all__ = ["SqlAlchemyUnitOfWork", "unit_of_work_scope"]
