# src/streamingest/engine/confirmer.py
"""CommitConfirmer: block until an offset token is durably committed.

Polling contract (fixed, not adaptive):

    poll once
    while the latest committed token != expected:
        if max_retries polls have been made: give up
        sleep one interval, poll again

Only a match seen on one of the first max_retries polls confirms. With the
defaults (20 polls, 1 second) a confirmation sleeps 19 times and never
blocks longer than max_retries x interval. There is no cancellation; the
retry ceiling is the only bound.

The loop runs on tenacity with the clock's sleep injected, so tests drive
it with MockClock and never wait in real time. Errors raised while polling
are not retried; they propagate to the caller.
"""

from __future__ import annotations

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from streamingest.contracts.results import CommitResult
from streamingest.contracts.streaming import StreamingChannel
from streamingest.core.config import CommitSettings
from streamingest.core.logging import get_logger
from streamingest.engine.clock import DEFAULT_CLOCK, Clock

logger = get_logger(__name__)


def _last_observed(retry_state: RetryCallState) -> str | None:
    """Return the final poll's token instead of raising RetryError."""
    outcome = retry_state.outcome
    assert outcome is not None, "retry_error_callback runs only after an attempt"
    token: str | None = outcome.result()
    return token


class CommitConfirmer:
    """Polls a channel's latest committed offset token until it matches.

    Example:
        confirmer = CommitConfirmer(CommitSettings(), clock=MockClock())
        result = confirmer.confirm(channel, "1")
        if not result.confirmed:
            print(result.diagnostic)
    """

    def __init__(self, settings: CommitSettings | None = None, *, clock: Clock | None = None) -> None:
        self._settings = settings if settings is not None else CommitSettings()
        self._clock = clock if clock is not None else DEFAULT_CLOCK

    @property
    def max_retries(self) -> int:
        return self._settings.max_retries

    def confirm(self, channel: StreamingChannel, expected_token: str, *, row_id: str | None = None) -> CommitResult:
        """Wait for expected_token to become the channel's latest committed token.

        Args:
            channel: Channel the token was submitted on
            expected_token: Offset token of the last submitted row
            row_id: Sequence id reported in the diagnostic (defaults to the token)

        Returns:
            CommitResult, confirmed or timed out. Never raises for a timeout.
        """
        polls = 0

        def poll() -> str | None:
            nonlocal polls
            polls += 1
            return channel.get_latest_committed_offset_token()

        def log_retry(retry_state: RetryCallState) -> None:
            logger.debug(
                "commit_not_yet_visible",
                expected=expected_token,
                observed=retry_state.outcome.result() if retry_state.outcome else None,
                retry=retry_state.attempt_number,
            )

        retrying = Retrying(
            stop=stop_after_attempt(self._settings.max_retries),
            wait=wait_fixed(self._settings.poll_interval_seconds),
            retry=retry_if_result(lambda token: token != expected_token),
            sleep=self._clock.sleep,
            before_sleep=log_retry,
            retry_error_callback=_last_observed,
        )
        observed = retrying(poll)

        result = CommitResult(
            confirmed=observed == expected_token,
            expected_token=expected_token,
            last_observed_token=observed,
            polls=polls,
            max_retries=self._settings.max_retries,
            row_id=row_id if row_id is not None else expected_token,
        )
        if result.confirmed:
            logger.debug("commit_confirmed", token=expected_token, polls=polls)
        else:
            logger.warning(
                "commit_timeout",
                expected=expected_token,
                observed=observed,
                polls=polls,
                max_retries=self._settings.max_retries,
            )
        return result
