"""Adapters from vendor SDKs to the streaming protocols."""

from streamingest.clients.snowpipe import SnowpipeChannel, SnowpipeClient, build_snowpipe_client

__all__ = [
    "SnowpipeChannel",
    "SnowpipeClient",
    "build_snowpipe_client",
]
