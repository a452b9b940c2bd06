"""OffsetSequencer: per-channel offset tokens.

Tokens are the decimal string form of a counter that starts at 1 for every
freshly opened channel. Reading the current token never advances it; the
handler calls advance() only after the commit of that token is confirmed.
A failed confirmation therefore leaves the counter where it was, and the
next submission reuses the same token.
"""

from __future__ import annotations

INITIAL_OFFSET = 1


class OffsetSequencer:
    """Strictly increasing offset tokens, scoped to one channel lifetime."""

    def __init__(self, start: int = INITIAL_OFFSET) -> None:
        if start < INITIAL_OFFSET:
            raise ValueError(f"Offset sequence must start at {INITIAL_OFFSET} or above, got {start}")
        self._value = start

    @property
    def value(self) -> int:
        return self._value

    def current(self) -> str:
        """Return the token the next submission should carry."""
        return str(self._value)

    def advance(self) -> None:
        """Move to the next token. Call only after a confirmed commit."""
        self._value += 1

    def reset(self) -> None:
        """Restart the sequence for a newly opened channel."""
        self._value = INITIAL_OFFSET

    def __repr__(self) -> str:
        return f"OffsetSequencer(value={self._value})"
