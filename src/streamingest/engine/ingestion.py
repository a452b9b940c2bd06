"""IngestionHandler: one event in, one IngestOutcome out.

Per invocation:

    ensure client + channel      -> INITIALIZATION on failure, nothing submitted
    assemble rows                -> UNEXPECTED if an entry does not parse
    submit rows                  -> VALIDATION with the first row-level error
    confirm last token           -> COMMIT_TIMEOUT with the poll diagnostic
    advance sequencer            -> success

All rows of one event carry the same offset token, the sequencer's current
value, and only that token is confirmed. Earlier rows of a multi-row event
have no durability guarantee of their own beyond sharing the token.

No exception escapes handle(); everything becomes an IngestOutcome.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from streamingest.contracts.enums import FailureCategory, IngestMode
from streamingest.contracts.errors import InitializationError, SubmissionError
from streamingest.contracts.results import IngestOutcome, SubmitResult
from streamingest.contracts.streaming import Row, RowInsertError, StreamingChannel
from streamingest.core.config import IngestSettings
from streamingest.core.logging import get_logger
from streamingest.engine.confirmer import CommitConfirmer
from streamingest.engine.connection import ConnectionManager, IngestSession
from streamingest.engine.rows import assemble_multi, assemble_single, environment_snapshot

logger = get_logger(__name__)

NO_ROWS_MESSAGE = "No rows to submit"


class IngestionHandler:
    """Orchestrates connection, assembly, submission and confirmation.

    The handler holds no per-instance state of its own; everything that
    survives between invocations lives in the IngestSession passed in.
    """

    def __init__(
        self,
        settings: IngestSettings,
        connections: ConnectionManager,
        confirmer: CommitConfirmer,
        *,
        environment: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize handler.

        Args:
            settings: Validated settings
            connections: Manager for the session's client/channel pair
            confirmer: Commit-confirmation poller
            environment: Fixed environment for the ENV column (defaults to
                a fresh redacted snapshot of os.environ per invocation)
        """
        self._settings = settings
        self._connections = connections
        self._confirmer = confirmer
        self._environment = environment

    def handle(
        self,
        session: IngestSession,
        event: Mapping[str, Any],
        *,
        identity: str,
        mode: IngestMode = IngestMode.SINGLE,
        context: Mapping[str, Any] | None = None,
    ) -> IngestOutcome:
        """Ingest one event and report whether it was durably committed.

        Args:
            session: Warm-instance connection state (mutated)
            event: Inbound event, string keys to (usually serialized) values
            identity: Client identity used if the session has none yet
            mode: SINGLE (whole event, one row) or MULTI (one row per entry)
            context: Invocation context for the CONTEXT column

        Returns:
            IngestOutcome; never raises
        """
        try:
            channel = self._connections.ensure(session, identity)
        except InitializationError:
            outcome = IngestOutcome.initialization_failure()
            self._log_outcome(outcome, mode)
            return outcome

        if self._settings.debug:
            logger.debug("event_received", mode=mode.value, event=dict(event))

        rows_submitted = 0
        try:
            rows = self._assemble(event, mode, context)
            submitted = self._submit(channel, rows, session.sequencer.current())
            rows_submitted = submitted.rows_submitted

            if submitted.error is not None:
                outcome = IngestOutcome.failure(
                    FailureCategory.VALIDATION,
                    submitted.error.message,
                    rows_submitted=rows_submitted,
                )
            elif submitted.last_token is None:
                outcome = IngestOutcome.failure(FailureCategory.UNEXPECTED, NO_ROWS_MESSAGE)
            else:
                commit = self._confirmer.confirm(channel, submitted.last_token)
                if commit.confirmed:
                    session.sequencer.advance()
                    outcome = IngestOutcome.success(rows_submitted=rows_submitted, commit=commit)
                else:
                    outcome = IngestOutcome.commit_timeout(commit, rows_submitted=rows_submitted)
        except SubmissionError as e:
            outcome = IngestOutcome.failure(FailureCategory.UNEXPECTED, str(e), rows_submitted=e.rows_submitted)
            logger.exception("ingest_submission_failed", rows=e.rows_submitted)
        except Exception as e:
            outcome = IngestOutcome.failure(FailureCategory.UNEXPECTED, str(e), rows_submitted=rows_submitted)
            logger.exception("ingest_unexpected_error", error_type=type(e).__name__)

        self._log_outcome(outcome, mode)
        return outcome

    def _assemble(self, event: Mapping[str, Any], mode: IngestMode, context: Mapping[str, Any] | None) -> list[Row]:
        environment = self._environment if self._environment is not None else environment_snapshot(os.environ)
        if mode == IngestMode.MULTI:
            rows = assemble_multi(event, environment, context)
            if self._settings.debug:
                for row in rows:
                    logger.debug("event_row", event_type=row["EVENT_TYPE"], event=row["EVENT"])
            return rows
        return assemble_single(event, environment, context)

    def _submit(self, channel: StreamingChannel, rows: list[Row], token: str) -> SubmitResult:
        """Submit every row with the same token; keep only the first rejection.

        Raises:
            SubmissionError: If the channel raises, carrying the rows already handed over
        """
        first_error: RowInsertError | None = None
        last_token: str | None = None
        for index, row in enumerate(rows):
            try:
                response = channel.insert_row(row, token)
            except Exception as e:
                raise SubmissionError(str(e), rows_submitted=index) from e
            last_token = token
            error = response.first_error()
            if error is not None and first_error is None:
                first_error = RowInsertError(message=error.message, row_index=index, exception=error.exception)
        return SubmitResult(last_token=last_token, rows_submitted=len(rows), error=first_error)

    def _log_outcome(self, outcome: IngestOutcome, mode: IngestMode) -> None:
        if outcome.ok:
            logger.info(
                "ingest_committed",
                mode=mode.value,
                rows=outcome.rows_submitted,
                offset_token=outcome.confirmed_token,
            )
        else:
            # category is always set on a failed outcome
            logger.error(
                "ingest_failed",
                mode=mode.value,
                category=outcome.category.value if outcome.category else None,
                rows=outcome.rows_submitted,
                message=outcome.message,
            )
