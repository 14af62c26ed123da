# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import threading
from collections.abc import Callable

from custody.shared.logging import logger


class TokenSweeper:
    """Background thread that purges expired session tokens periodically."""

    def __init__(self, sweep: Callable[[], int], *, interval: float) -> None:
        self._sweep = sweep
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._interval <= 0:
            logger.info("token_sweeper: disabled (interval=0)")
            return
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="token-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)

    def run_once(self) -> int:
        try:
            return self._sweep()
        except Exception:
            logger.exception("token_sweeper: pass failed")
            return 0

    def _run(self) -> None:
        logger.info(f"token_sweeper: start interval={self._interval}s")
        while not self._stop.wait(self._interval):
            self.run_once()
        logger.info("token_sweeper: stopped")


__all__ = ["TokenSweeper"]
