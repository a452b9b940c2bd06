"""Operation outcomes and results.

These types answer: "What did an operation produce?"

Submission and confirmation return these instead of raising, so the
orchestrator branches on structured outcomes. Only the serverless entry
point renders an IngestOutcome into the status string.
"""

from __future__ import annotations

from dataclasses import dataclass

from streamingest.contracts.enums import FailureCategory
from streamingest.contracts.streaming import RowInsertError

SUCCESS_STATUS = "200 OK"
FAILURE_STATUS_PREFIX = "500"

INIT_FAILURE_MESSAGE = "Unable to Initialize SF Streaming Client, check Lambda configuration"


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Result of waiting for an offset token to become durable.

    Fields:
        confirmed: True if the expected token was observed
        expected_token: Token the caller submitted last
        last_observed_token: Latest committed token seen on the final poll
        polls: Number of times the channel was polled
        max_retries: Retry ceiling in force for this wait
        row_id: Sequence id of the row being confirmed
    """

    confirmed: bool
    expected_token: str
    last_observed_token: str | None
    polls: int
    max_retries: int
    row_id: str

    @property
    def diagnostic(self) -> str | None:
        """Timeout message, or None when the commit was confirmed."""
        if self.confirmed:
            return None
        observed = "NULL" if self.last_observed_token is None else self.last_observed_token.upper()
        return (
            f"Failed to receive required OffsetToken in Snowflake:{self.expected_token} "
            f"after MaxRetryCounts:{self.max_retries} ({observed}) at ID={self.row_id}"
        )


@dataclass(frozen=True, slots=True)
class SubmitResult:
    """Result of submitting an event's rows to a channel.

    last_token is the offset token of the last row handed to the channel,
    and the only one the handler confirms.
    """

    last_token: str | None
    rows_submitted: int
    error: RowInsertError | None = None

    @property
    def rejected(self) -> bool:
        return self.error is not None


@dataclass(frozen=True, slots=True)
class IngestOutcome:
    """Outcome of one invocation.

    Use the factory methods to create instances.
    """

    category: FailureCategory | None
    message: str
    rows_submitted: int = 0
    confirmed_token: str | None = None
    commit: CommitResult | None = None

    @classmethod
    def success(cls, *, rows_submitted: int, commit: CommitResult) -> IngestOutcome:
        return cls(
            category=None,
            message="OK",
            rows_submitted=rows_submitted,
            confirmed_token=commit.expected_token,
            commit=commit,
        )

    @classmethod
    def failure(cls, category: FailureCategory, message: str, *, rows_submitted: int = 0) -> IngestOutcome:
        return cls(category=category, message=message, rows_submitted=rows_submitted)

    @classmethod
    def initialization_failure(cls) -> IngestOutcome:
        return cls.failure(FailureCategory.INITIALIZATION, INIT_FAILURE_MESSAGE)

    @classmethod
    def commit_timeout(cls, commit: CommitResult, *, rows_submitted: int) -> IngestOutcome:
        # diagnostic is never None for an unconfirmed commit
        return cls(
            category=FailureCategory.COMMIT_TIMEOUT,
            message=commit.diagnostic or "",
            rows_submitted=rows_submitted,
            commit=commit,
        )

    @property
    def ok(self) -> bool:
        return self.category is None

    def raise_for_status(self) -> None:
        """Raise the IngestError matching this outcome's category, if it failed."""
        from streamingest.contracts.errors import (
            CommitTimeoutError,
            IngestError,
            InitializationError,
            RowValidationError,
        )

        if self.category is None:
            return
        if self.category == FailureCategory.INITIALIZATION:
            raise InitializationError(self.message)
        if self.category == FailureCategory.VALIDATION:
            raise RowValidationError(self.message)
        if self.category == FailureCategory.COMMIT_TIMEOUT and self.commit is not None:
            raise CommitTimeoutError(self.commit)
        raise IngestError(self.message)

    @property
    def status(self) -> str:
        """Render as the invocation's status string."""
        if self.ok:
            return SUCCESS_STATUS
        return f"{FAILURE_STATUS_PREFIX} {self.message}"
