"""Ingestion engine: connection lifecycle, row assembly, offsets and commit confirmation."""

from streamingest.engine.clock import DEFAULT_CLOCK, Clock, MockClock, SystemClock
from streamingest.engine.confirmer import CommitConfirmer
from streamingest.engine.connection import ClientFactory, ConnectionManager, IngestSession
from streamingest.engine.ingestion import IngestionHandler
from streamingest.engine.sequencer import OffsetSequencer

__all__ = [
    "DEFAULT_CLOCK",
    "ClientFactory",
    "Clock",
    "CommitConfirmer",
    "ConnectionManager",
    "IngestSession",
    "IngestionHandler",
    "MockClock",
    "OffsetSequencer",
    "SystemClock",
]
