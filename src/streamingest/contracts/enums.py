"""Status codes, modes, and options used across subsystem boundaries."""

from enum import StrEnum


class IngestMode(StrEnum):
    """How an inbound event is turned into rows.

    SINGLE: the whole event becomes one row.
    MULTI: each event entry becomes its own row.
    """

    SINGLE = "single"
    MULTI = "multi"


class FailureCategory(StrEnum):
    """Why an invocation did not report success.

    Every failed IngestOutcome carries exactly one category.
    """

    INITIALIZATION = "initialization"
    VALIDATION = "validation"
    COMMIT_TIMEOUT = "commit_timeout"
    UNEXPECTED = "unexpected"


class OnErrorOption(StrEnum):
    """Channel behaviour when the remote side rejects a row.

    CONTINUE keeps the channel open for subsequent rows.
    ABORT closes the channel on the first rejected row.
    """

    CONTINUE = "continue"
    ABORT = "abort"
