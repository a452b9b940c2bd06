"""Protocols for the remote streaming client and channel.

These describe the external collaborator the engine talks to. The real
implementation lives in streamingest.clients.snowpipe; tests use
streamingest.testing.fake_channel.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from streamingest.contracts.enums import OnErrorOption

# A row is a mapping of column name to value.
Row = dict[str, Any]


@dataclass(frozen=True, slots=True)
class OpenChannelRequest:
    """Everything needed to open a channel against a destination table."""

    channel_name: str
    database: str
    schema_name: str
    table: str
    on_error: OnErrorOption = OnErrorOption.CONTINUE

    @property
    def fully_qualified_table(self) -> str:
        return f"{self.database}.{self.schema_name}.{self.table}"


@dataclass(frozen=True, slots=True)
class RowInsertError:
    """One row-level rejection reported by the remote side.

    Attributes:
        message: Human-readable reason the row was rejected
        row_index: Index of the rejected row within the submission
        exception: Underlying exception, when the client raised one
    """

    message: str
    row_index: int = 0
    exception: BaseException | None = None


@dataclass
class InsertValidationResponse:
    """Outcome of a single row submission.

    An empty error list means the row was accepted for ingestion. It does NOT
    mean the row is durable; durability is observed through the channel's
    latest committed offset token.
    """

    errors: list[RowInsertError] = field(default_factory=list)

    def has_errors(self) -> bool:
        return bool(self.errors)

    def first_error(self) -> RowInsertError | None:
        """Return the first reported error, ignoring the rest."""
        if not self.errors:
            return None
        return self.errors[0]


class StreamingChannel(Protocol):
    """An open, ordered destination for row submissions."""

    @property
    def name(self) -> str: ...

    def is_valid(self) -> bool:
        """False once the remote side has invalidated the channel."""
        ...

    def is_closed(self) -> bool: ...

    def insert_row(self, row: Mapping[str, Any], offset_token: str) -> InsertValidationResponse:
        """Submit one row tagged with an offset token."""
        ...

    def get_latest_committed_offset_token(self) -> str | None:
        """Return the most recent durably committed offset token, if any."""
        ...


class StreamingClient(Protocol):
    """A remote client handle, identified by a caller-chosen name."""

    @property
    def name(self) -> str: ...

    def is_closed(self) -> bool: ...

    def open_channel(self, request: OpenChannelRequest) -> StreamingChannel:
        """Open (or reopen) a channel. Raises on configuration or network failure."""
        ...

    def close(self) -> None: ...
