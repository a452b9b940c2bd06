"""In-memory streaming backend.

Implements the StreamingClient / StreamingChannel protocols without a
network, with knobs for the failure modes the engine must survive:

- commit_lag: polls before a submitted token shows up as committed
- stall: submitted tokens never commit
- reject_next(): row-level rejections for the next submission
- invalidate() / close(): remote-side loss of a channel or client
- create_error / open_error: initialization failures

Used by the test suite and by ``streamingest send --dry-run``.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from typing import Any

from streamingest.contracts.streaming import (
    InsertValidationResponse,
    OpenChannelRequest,
    Row,
    RowInsertError,
)
from streamingest.core.config import IngestSettings


class ChannelUnavailableError(RuntimeError):
    """Raised when a row is submitted to an invalid or closed channel."""


class FakeStreamingChannel:
    """Channel that commits submitted tokens after a configurable lag."""

    def __init__(
        self,
        request: OpenChannelRequest,
        *,
        commit_lag: int = 0,
        stall: bool = False,
        committed_token: str | None = None,
    ) -> None:
        self.request = request
        self.commit_lag = commit_lag
        self.stall = stall
        self.rows: list[tuple[Row, str]] = []
        self.polls = 0
        self._committed = committed_token
        self._pending: str | None = None
        self._polls_until_commit = 0
        self._rejections: deque[list[str]] = deque()
        self._valid = True
        self._closed = False

    @property
    def name(self) -> str:
        return self.request.channel_name

    @property
    def tokens(self) -> list[str]:
        """Offset tokens in submission order."""
        return [token for _, token in self.rows]

    def is_valid(self) -> bool:
        return self._valid

    def is_closed(self) -> bool:
        return self._closed

    def invalidate(self) -> None:
        self._valid = False

    def close(self) -> None:
        self._closed = True

    def reject_next(self, *messages: str) -> None:
        """Report these row-level errors for the next submitted row."""
        self._rejections.append(list(messages))

    def insert_row(self, row: Mapping[str, Any], offset_token: str) -> InsertValidationResponse:
        if self._closed or not self._valid:
            raise ChannelUnavailableError(f"Channel {self.name} is no longer usable")

        self.rows.append((dict(row), offset_token))
        messages = self._rejections.popleft() if self._rejections else []
        if messages:
            row_index = len(self.rows) - 1
            return InsertValidationResponse(errors=[RowInsertError(message=m, row_index=row_index) for m in messages])

        self._pending = offset_token
        self._polls_until_commit = self.commit_lag
        return InsertValidationResponse()

    def get_latest_committed_offset_token(self) -> str | None:
        self.polls += 1
        if self._pending is not None and not self.stall:
            if self._polls_until_commit <= 0:
                self._committed = self._pending
                self._pending = None
            else:
                self._polls_until_commit -= 1
        return self._committed


class FakeStreamingClient:
    """Client whose channels are FakeStreamingChannel instances."""

    def __init__(
        self,
        name: str,
        *,
        open_error: Exception | None = None,
        channel_options: Mapping[str, Any] | None = None,
    ) -> None:
        self._name = name
        self.open_error = open_error
        self.channel_options = dict(channel_options or {})
        self.channels: list[FakeStreamingChannel] = []
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def channel(self) -> FakeStreamingChannel | None:
        """Most recently opened channel."""
        return self.channels[-1] if self.channels else None

    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        for channel in self.channels:
            channel.close()

    def open_channel(self, request: OpenChannelRequest) -> FakeStreamingChannel:
        if self._closed:
            raise ChannelUnavailableError(f"Client {self._name} is closed")
        if self.open_error is not None:
            raise self.open_error
        channel = FakeStreamingChannel(request, **self.channel_options)
        self.channels.append(channel)
        return channel


class FakeClientFactory:
    """ClientFactory producing FakeStreamingClient instances.

    Example:
        factory = FakeClientFactory(commit_lag=2)
        manager = ConnectionManager(settings, factory)
        ...
        assert factory.latest_channel.tokens == ["1"]
    """

    def __init__(
        self,
        *,
        commit_lag: int = 0,
        stall: bool = False,
        committed_token: str | None = None,
        create_error: Exception | None = None,
        open_error: Exception | None = None,
    ) -> None:
        self.channel_options: dict[str, Any] = {
            "commit_lag": commit_lag,
            "stall": stall,
            "committed_token": committed_token,
        }
        self.create_error = create_error
        self.open_error = open_error
        self.clients: list[FakeStreamingClient] = []
        self.identities: list[str] = []

    def __call__(self, identity: str, settings: IngestSettings) -> FakeStreamingClient:
        self.identities.append(identity)
        if self.create_error is not None:
            raise self.create_error
        client = FakeStreamingClient(identity, open_error=self.open_error, channel_options=self.channel_options)
        self.clients.append(client)
        return client

    @property
    def latest_client(self) -> FakeStreamingClient | None:
        return self.clients[-1] if self.clients else None

    @property
    def latest_channel(self) -> FakeStreamingChannel | None:
        client = self.latest_client
        return client.channel if client is not None else None

    @property
    def channels(self) -> list[FakeStreamingChannel]:
        """Every channel opened through any client, in order."""
        return [channel for client in self.clients for channel in client.channels]
