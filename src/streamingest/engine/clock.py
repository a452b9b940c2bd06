# src/streamingest/engine/clock.py
"""Clock abstraction for testable polling.

This module provides a Clock protocol that abstracts time access and
blocking waits, enabling deterministic testing of the commit-confirmation
poll without real delay.

Production code uses SystemClock (the default).
Tests inject MockClock, whose sleep() advances time instantly.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Abstract clock for poll intervals and deadlines.

    Implementations:
    - SystemClock: Uses time.monotonic() and time.sleep() (production)
    - MockClock: Returns controllable times, sleep() only advances (testing)
    """

    def monotonic(self) -> float:
        """Return monotonic time in seconds.

        Must never go backwards. Suitable for elapsed time and deadlines.
        """
        ...

    def sleep(self, seconds: float) -> None:
        """Block the caller for the given number of seconds."""
        ...


class SystemClock:
    """Production clock using time.monotonic() and time.sleep()."""

    def monotonic(self) -> float:
        """Return system monotonic time."""
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


class MockClock:
    """Controllable clock for deterministic testing.

    sleep() advances mock time and records the requested duration, so a
    nineteen-second wait finishes immediately while elapsed time still reads
    nineteen seconds.

    Example:
        clock = MockClock()
        confirmer = CommitConfirmer(CommitSettings(), clock=clock)

        result = confirmer.confirm(channel, "1")
        assert clock.monotonic() == 19.0
        assert len(clock.sleeps) == 19
    """

    def __init__(self, start: float = 0.0) -> None:
        """Initialize mock clock at a given time.

        Args:
            start: Initial monotonic time value (default 0.0).
        """
        self._current = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        """Return current mock time."""
        return self._current

    def sleep(self, seconds: float) -> None:
        """Record the sleep and advance mock time without blocking."""
        self.advance(seconds)
        self.sleeps.append(seconds)

    def advance(self, seconds: float) -> None:
        """Advance mock time by specified seconds.

        Raises:
            ValueError: If seconds is negative.
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance time by negative amount: {seconds}")
        self._current += seconds


# Default clock for production use
DEFAULT_CLOCK: Clock = SystemClock()
