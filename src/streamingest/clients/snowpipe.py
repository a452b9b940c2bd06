"""Snowpipe Streaming client adapter.

Wraps the vendor SDK (``snowpipe-streaming``, import name
``snowflake.ingest.streaming``) behind the StreamingClient and
StreamingChannel protocols. The SDK is an optional extra:

    pip install streamingest[snowflake]

The SDK binds a client to a pipe rather than a table. Each target table
has a default streaming pipe named ``<TABLE>-STREAMING``, which is used
unless ``pipe_name`` is given. Row-rejection behaviour (ON_ERROR) is a
property of that pipe; the channel request's on_error is recorded for
logging only.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from streamingest.contracts.streaming import InsertValidationResponse, OpenChannelRequest, RowInsertError
from streamingest.core.config import IngestSettings
from streamingest.core.logging import get_logger

if TYPE_CHECKING:
    from snowflake.ingest.streaming import StreamingIngestClient

logger = get_logger(__name__)


def default_pipe_name(table: str) -> str:
    return f"{table.upper()}-STREAMING"


class SnowpipeChannel:
    """StreamingChannel backed by an SDK channel."""

    def __init__(self, name: str, channel: Any) -> None:
        self._name = name
        self._channel = channel

    @property
    def name(self) -> str:
        return self._name

    def is_valid(self) -> bool:
        """Tracked through the SDK channel's closed state: an open channel counts as valid."""
        return not self._channel.is_closed()

    def is_closed(self) -> bool:
        closed: bool = self._channel.is_closed()
        return closed

    def insert_row(self, row: Mapping[str, Any], offset_token: str) -> InsertValidationResponse:
        """Append one row.

        The SDK raises on a rejected row. If the channel is still open
        afterwards the rejection is reported as a row-level error;
        otherwise the error propagates and the channel reads as invalid.
        """
        try:
            self._channel.append_row(dict(row), offset_token=offset_token)
        except Exception as e:
            if self._channel.is_closed():
                raise
            return InsertValidationResponse(errors=[RowInsertError(message=str(e), row_index=0, exception=e)])
        return InsertValidationResponse()

    def get_latest_committed_offset_token(self) -> str | None:
        token = self._channel.get_latest_committed_offset_token()
        return None if token is None else str(token)

    def close(self) -> None:
        self._channel.close()


class SnowpipeClient:
    """StreamingClient backed by an SDK client bound to one destination pipe."""

    def __init__(self, name: str, client: StreamingIngestClient) -> None:
        self._name = name
        self._client = client

    @property
    def name(self) -> str:
        return self._name

    def is_closed(self) -> bool:
        closed: bool = self._client.is_closed()
        return closed

    def open_channel(self, request: OpenChannelRequest) -> SnowpipeChannel:
        logger.debug(
            "opening_channel",
            channel=request.channel_name,
            table=request.fully_qualified_table,
            on_error=request.on_error.value,
        )
        opened = self._client.open_channel(request.channel_name)
        # The SDK returns (channel, status)
        channel = opened[0] if isinstance(opened, tuple) else opened
        return SnowpipeChannel(request.channel_name, channel)

    def close(self) -> None:
        self._client.close()


def build_snowpipe_client(identity: str, settings: IngestSettings, *, pipe_name: str | None = None) -> SnowpipeClient:
    """ClientFactory for the real service.

    Args:
        identity: Client name, unique per compute instance
        settings: Validated settings (credentials and destination)
        pipe_name: Override for the table's default streaming pipe

    Raises:
        ImportError: If the snowflake extra is not installed
    """
    try:
        from snowflake.ingest.streaming import StreamingIngestClient
    except ImportError as e:
        raise ImportError(
            "Snowpipe Streaming SDK is not installed. Install with: pip install streamingest[snowflake]"
        ) from e

    destination = settings.destination
    client = StreamingIngestClient(
        client_name=identity,
        db_name=destination.database,
        schema_name=destination.schema_name,
        pipe_name=pipe_name or default_pipe_name(destination.table),
        properties=settings.connection.to_properties(),
    )
    logger.info(
        "snowpipe_client_built",
        client_id=identity,
        host=settings.connection.resolved_host,
        database=destination.database,
        schema=destination.schema_name,
    )
    return SnowpipeClient(identity, client)
