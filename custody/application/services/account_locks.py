# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Per-account mutual exclusion."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class AccountLocks:
    """Registry of one lock per account id.

    The guard is held only while an entry is looked up or released, never while
    an account lock is held, so different accounts never wait on each other.
    Entries are dropped once no thread holds or waits for them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, account_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(account_id)
            if entry is None:
                entry = _Entry()
                self._entries[account_id] = entry
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(account_id, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


__all__ = ["AccountLocks"]
