"""Exception types for ingestion failures.

Submission and confirmation report through result types
(see streamingest.contracts.results). These exceptions cover building the
client/channel pair, loading configuration and a channel failing mid-submit.
IngestOutcome.raise_for_status() turns a failed outcome into the matching
exception for callers outside the serverless handler, such as the CLI.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from streamingest.contracts.enums import FailureCategory

if TYPE_CHECKING:
    from streamingest.contracts.results import CommitResult


class IngestError(Exception):
    """Base class for ingestion failures.

    Attributes:
        category: FailureCategory the orchestrator reports for this error
    """

    category: FailureCategory = FailureCategory.UNEXPECTED


class InitializationError(IngestError):
    """Raised when the remote client or channel cannot be created.

    Never retried within an invocation. The cause is chained so the
    original configuration or network error stays in the log.
    """

    category = FailureCategory.INITIALIZATION


class SettingsError(InitializationError):
    """Raised when configuration is missing or fails validation."""


class RowValidationError(IngestError):
    """Raised when the remote side rejects a submitted row.

    Only the first row-level error of a submission is carried.
    """

    category = FailureCategory.VALIDATION

    def __init__(self, message: str, *, row_index: int = 0) -> None:
        self.row_index = row_index
        super().__init__(message)


class CommitTimeoutError(IngestError):
    """Raised when an offset token is not observed within the retry ceiling.

    Carries the CommitResult so callers can inspect the expected and last
    observed tokens.
    """

    category = FailureCategory.COMMIT_TIMEOUT

    def __init__(self, result: CommitResult) -> None:
        self.result = result
        super().__init__(result.diagnostic)


class SubmissionError(IngestError):
    """Raised when the channel fails while rows are being submitted.

    Attributes:
        rows_submitted: Rows handed to the channel before the failure
    """

    def __init__(self, message: str, *, rows_submitted: int) -> None:
        self.rows_submitted = rows_submitted
        super().__init__(message)
