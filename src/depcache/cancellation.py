# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Caller-supplied deadlines and cancellation signals for blocking operations."""

from __future__ import annotations

import time
from threading import Event

from .errors import DeadlineExceeded, OperationCancelled


class CancelToken:
    """Combine an optional monotonic deadline with an explicit cancel event.

    Registry lookups, builds and pushes call :meth:`check` before they start
    so a cancelled resolution never reaches a publish step.
    """

    def __init__(self, *, timeout: float | None = None, event: Event | None = None) -> None:
        """Create a token expiring ``timeout`` seconds from now.

        Args:
            timeout: Seconds until the deadline; ``None`` disables it.
            event: Shared event allowing other threads to cancel.
        """

        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._event = event or Event()

    @property
    def cancelled(self) -> bool:
        """Return ``True`` once :meth:`cancel` was called or the deadline passed."""

        return self._event.is_set() or self.expired

    @property
    def expired(self) -> bool:
        """Return ``True`` when the deadline has elapsed."""

        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        """Signal cancellation to every holder of the token."""

        self._event.set()

    def remaining(self) -> float | None:
        """Return seconds left before the deadline, or ``None`` when unbounded."""

        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self, stage: str) -> None:
        """Raise when the token is cancelled.

        Args:
            stage: Operation about to start, reported in the error.

        Raises:
            DeadlineExceeded: If the deadline passed.
            OperationCancelled: If :meth:`cancel` was called.
        """

        if self._event.is_set():
            raise OperationCancelled(stage)
        if self.expired:
            raise DeadlineExceeded(stage)

    def wait(self, seconds: float) -> None:
        """Sleep up to ``seconds`` waking early on cancellation or deadline."""

        remaining = self.remaining()
        delay = seconds if remaining is None else min(seconds, remaining)
        self._event.wait(max(0.0, delay))


def ensure_token(token: CancelToken | None) -> CancelToken:
    """Return ``token`` or a fresh token without a deadline."""

    return token if token is not None else CancelToken()


__all__ = ["CancelToken", "ensure_token"]
