# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from threading import Lock

from custody.domain.users import LoginThrottle
from custody.shared.logging import logger


@dataclass
class LoginAttempt:
    timestamp: float
    success: bool
    ip_address: str | None = None


class LoginAttemptsTracker(LoginThrottle):
    """Locks a login id after too many failures inside a sliding window.

    Keyed by the submitted id whether or not such a user exists.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 5,
        lockout_duration: float = 15 * 60,
        attempt_window: float = 60 * 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_attempts = max_attempts
        self.lockout_duration = lockout_duration
        self.attempt_window = attempt_window
        self._clock = clock
        self._attempts: dict[str, deque[LoginAttempt]] = defaultdict(
            lambda: deque(maxlen=self.max_attempts * 2)
        )
        self._lock = Lock()
        self._lockouts: dict[str, float] = {}  # username -> unlock_time

    def record_attempt(
        self, username: str, success: bool, ip_address: str | None = None
    ) -> None:
        with self._lock:
            self._attempts[username].append(
                LoginAttempt(timestamp=self._clock(), success=success, ip_address=ip_address)
            )

            if success:
                # a success resets the failure streak
                del self._attempts[username]
                if self._lockouts.pop(username, None) is not None:
                    logger.info(f"login_attempts: cleared lockout for user={username}")
            else:
                self._check_and_lock(username)

    def is_locked(self, username: str) -> bool:
        with self._lock:
            unlock_time = self._lockouts.get(username)
            if unlock_time is None:
                return False

            if self._clock() >= unlock_time:
                del self._lockouts[username]
                self._attempts.pop(username, None)
                logger.info(f"login_attempts: lockout expired for user={username}")
                return False

            return True

    def get_lockout_remaining(self, username: str) -> float:
        with self._lock:
            if username not in self._lockouts:
                return 0.0
            return max(0.0, self._lockouts[username] - self._clock())

    def get_failed_attempts_count(self, username: str) -> int:
        with self._lock:
            return len(self._recent_failures(username))

    def _recent_failures(self, username: str) -> list[LoginAttempt]:
        if username not in self._attempts:
            return []
        cutoff = self._clock() - self.attempt_window
        return [
            attempt
            for attempt in self._attempts[username]
            if not attempt.success and attempt.timestamp > cutoff
        ]

    def _check_and_lock(self, username: str) -> None:
        failed_attempts = self._recent_failures(username)

        if len(failed_attempts) >= self.max_attempts:
            self._lockouts[username] = self._clock() + self.lockout_duration

            ips = {attempt.ip_address for attempt in failed_attempts if attempt.ip_address}
            logger.warning(
                f"login_attempts: ACCOUNT LOCKED user={username} "
                f"failed_attempts={len(failed_attempts)} "
                f"lockout_duration={self.lockout_duration}s "
                f"ip_addresses={sorted(ips) if ips else 'unknown'}"
            )


__all__ = ["LoginAttempt", "LoginAttemptsTracker"]
