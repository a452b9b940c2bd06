"""ConnectionManager: lazy client/channel lifecycle for an IngestSession.

The session is the warm-instance state: one client, one channel and the
channel's offset sequencer. It is created empty, filled on first use, and
rebuilt piecewise whenever the remote side closes or invalidates a handle:

    client None or closed              -> new client, then new channel
    channel None, invalid or closed    -> new channel on the current client
    new channel                        -> sequencer restarts at 1

Channels are replaced, never repaired. Nothing is torn down explicitly; the
hosting platform discards the session when it recycles the instance.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from streamingest.contracts.errors import InitializationError
from streamingest.contracts.streaming import StreamingChannel, StreamingClient
from streamingest.core.config import IngestSettings
from streamingest.core.logging import get_logger
from streamingest.engine.sequencer import OffsetSequencer

logger = get_logger(__name__)

# Builds a client named after the session identity.
ClientFactory = Callable[[str, IngestSettings], StreamingClient]


@dataclass
class IngestSession:
    """Connection state owned by one compute instance.

    client_id is fixed by the first invocation and keeps client names unique
    across concurrently running instances.
    """

    client: StreamingClient | None = None
    channel: StreamingChannel | None = None
    sequencer: OffsetSequencer = field(default_factory=OffsetSequencer)
    client_id: str | None = None
    clients_created: int = 0
    channels_opened: int = 0

    def invalidate(self) -> None:
        """Drop the channel so the next ensure opens a fresh one."""
        self.channel = None


def _channel_state(channel: StreamingChannel | None) -> str | None:
    """Why a channel cannot be reused, or None if it can."""
    if channel is None:
        return "missing"
    if not channel.is_valid():
        return "invalid"
    if channel.is_closed():
        return "closed"
    return None


class ConnectionManager:
    """Creates and re-validates the client/channel pair held by a session."""

    def __init__(self, settings: IngestSettings, client_factory: ClientFactory) -> None:
        self._settings = settings
        self._client_factory = client_factory

    def ensure_client(self, session: IngestSession, identity: str) -> StreamingClient:
        """Return the session's client, building one if absent or closed.

        Raises:
            InitializationError: If the client cannot be built
        """
        if session.client_id is None:
            session.client_id = identity

        if session.client is not None and not session.client.is_closed():
            return session.client

        reason = "missing" if session.client is None else "closed"
        try:
            client = self._client_factory(session.client_id, self._settings)
        except Exception as e:
            logger.error("client_init_failed", client_id=session.client_id, error=str(e), error_type=type(e).__name__)
            raise InitializationError(f"Unable to create streaming client {session.client_id!r}: {e}") from e

        session.client = client
        # A channel belongs to the client that opened it
        session.channel = None
        session.clients_created += 1
        logger.info("client_created", client_id=session.client_id, reason=reason)
        return client

    def ensure_channel(self, session: IngestSession) -> StreamingChannel:
        """Return the session's channel, opening one if missing, invalid or closed.

        Opening a channel restarts the session's offset sequence at 1.

        Raises:
            InitializationError: If there is no client or the channel cannot be opened
        """
        reason = _channel_state(session.channel)
        if reason is None and session.channel is not None:
            return session.channel

        if session.client is None:
            raise InitializationError("Cannot open a channel before the client is created")

        request = self._settings.destination.open_channel_request()
        try:
            channel = session.client.open_channel(request)
        except Exception as e:
            logger.error(
                "channel_open_failed",
                channel=request.channel_name,
                table=request.fully_qualified_table,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InitializationError(f"Unable to open channel {request.channel_name!r}: {e}") from e

        session.channel = channel
        session.sequencer.reset()
        session.channels_opened += 1
        logger.info(
            "channel_opened",
            channel=request.channel_name,
            table=request.fully_qualified_table,
            reason=reason,
            next_offset=session.sequencer.current(),
        )
        return channel

    def ensure(self, session: IngestSession, identity: str) -> StreamingChannel:
        """Validate (and rebuild if needed) the pair before a submission."""
        self.ensure_client(session, identity)
        return self.ensure_channel(session)
