"""Shared contracts: enums, result types, errors and streaming protocols."""

from streamingest.contracts.enums import FailureCategory, IngestMode, OnErrorOption
from streamingest.contracts.errors import (
    CommitTimeoutError,
    IngestError,
    InitializationError,
    RowValidationError,
    SettingsError,
    SubmissionError,
)
from streamingest.contracts.results import (
    INIT_FAILURE_MESSAGE,
    SUCCESS_STATUS,
    CommitResult,
    IngestOutcome,
    SubmitResult,
)
from streamingest.contracts.streaming import (
    InsertValidationResponse,
    OpenChannelRequest,
    Row,
    RowInsertError,
    StreamingChannel,
    StreamingClient,
)

__all__ = [
    "INIT_FAILURE_MESSAGE",
    "SUCCESS_STATUS",
    "CommitResult",
    "CommitTimeoutError",
    "FailureCategory",
    "IngestError",
    "IngestMode",
    "IngestOutcome",
    "InitializationError",
    "InsertValidationResponse",
    "OnErrorOption",
    "OpenChannelRequest",
    "Row",
    "RowInsertError",
    "RowValidationError",
    "SettingsError",
    "StreamingChannel",
    "StreamingClient",
    "SubmissionError",
    "SubmitResult",
]
