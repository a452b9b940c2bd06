"""Test doubles for the remote streaming service."""

from streamingest.testing.fake_channel import (
    ChannelUnavailableError,
    FakeClientFactory,
    FakeStreamingChannel,
    FakeStreamingClient,
)

__all__ = [
    "ChannelUnavailableError",
    "FakeClientFactory",
    "FakeStreamingChannel",
    "FakeStreamingClient",
]
