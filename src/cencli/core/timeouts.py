"""Operation deadlines.

A :class:`Deadline` is created once per invocation from ``--timeout`` and
handed down to services, which check it between pages and batches and size
their HTTP timeouts from the remaining time.
"""

from __future__ import annotations

import time

from cencli.core.errors import DeadlineExceededError


class Deadline:
    """Wall-clock deadline for one operation.

    Parameters
    ----------
    timeout : float | None
        Seconds from now; ``None`` or ``0`` means no deadline
    clock : callable
        Monotonic clock, replaceable in tests
    """

    def __init__(self, timeout: float | None = None, clock=time.monotonic) -> None:
        self._clock = clock
        self.timeout = timeout if timeout else None
        self._expires_at = clock() + self.timeout if self.timeout else None

    @classmethod
    def none(cls) -> Deadline:
        """A deadline that never expires."""
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left, ``None`` when unbounded, never negative."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        """Whether the deadline has passed."""
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        """Raise :class:`DeadlineExceededError` once the deadline has passed."""
        if self.expired():
            raise DeadlineExceededError

    def request_timeout(self, per_request: float | None) -> float | None:
        """Combine a per-request timeout with the time left.

        Returns the smaller of the two, ``None`` when both are unbounded.
        """
        candidates = [t for t in (per_request or None, self.remaining()) if t is not None]
        if not candidates:
            return None
        return min(candidates)

    def __repr__(self) -> str:
        return f"Deadline(timeout={self.timeout!r}, remaining={self.remaining()!r})"
