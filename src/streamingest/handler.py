"""Serverless entry points.

Point the function's handler at one of:

    streamingest.handler.handle_request          whole event -> one row
    streamingest.handler.handle_request_as_rows  one row per event entry

Both return ``"200 OK"`` once the row(s) are durably committed, or
``"500 <message>"`` otherwise.

The module keeps one runtime (settings, IngestionHandler, IngestSession) per
warm instance. It is built from the environment on the first invocation and
reused until the platform recycles the instance. configure_runtime() installs
a runtime explicitly, e.g. with a fake client factory in tests.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from streamingest.contracts.enums import IngestMode
from streamingest.contracts.errors import SettingsError
from streamingest.contracts.results import IngestOutcome
from streamingest.core.config import IngestSettings, load_settings_from_env
from streamingest.core.logging import configure_logging, get_logger
from streamingest.engine.clock import Clock
from streamingest.engine.confirmer import CommitConfirmer
from streamingest.engine.connection import ClientFactory, ConnectionManager, IngestSession
from streamingest.engine.ingestion import IngestionHandler

logger = get_logger(__name__)

# Attributes copied from the platform's invocation context into CONTEXT.
_CONTEXT_ATTRIBUTES: tuple[str, ...] = (
    "aws_request_id",
    "function_name",
    "function_version",
    "invoked_function_arn",
    "memory_limit_in_mb",
    "log_group_name",
    "log_stream_name",
)


@dataclass
class Runtime:
    """Everything a warm instance keeps between invocations."""

    settings: IngestSettings
    handler: IngestionHandler
    session: IngestSession


_runtime: Runtime | None = None


def build_handler(
    settings: IngestSettings,
    *,
    client_factory: ClientFactory | None = None,
    clock: Clock | None = None,
) -> IngestionHandler:
    """Wire an IngestionHandler from settings.

    Args:
        settings: Validated settings
        client_factory: Builds remote clients (defaults to the Snowpipe adapter)
        clock: Clock for the commit poll (defaults to the system clock)
    """
    if client_factory is None:
        from streamingest.clients.snowpipe import build_snowpipe_client

        client_factory = build_snowpipe_client

    return IngestionHandler(
        settings,
        ConnectionManager(settings, client_factory),
        CommitConfirmer(settings.commit, clock=clock),
    )


def configure_runtime(
    settings: IngestSettings | None = None,
    *,
    client_factory: ClientFactory | None = None,
    clock: Clock | None = None,
) -> Runtime:
    """Build and install the warm-instance runtime.

    Raises:
        SettingsError: If settings are not given and the environment is invalid
    """
    global _runtime

    if settings is None:
        settings = load_settings_from_env()
    configure_logging(json_output=settings.log_json, level=settings.log_level)
    _runtime = Runtime(
        settings=settings,
        handler=build_handler(settings, client_factory=client_factory, clock=clock),
        session=IngestSession(),
    )
    return _runtime


def reset_runtime() -> None:
    """Forget the current runtime; the next invocation rebuilds it."""
    global _runtime
    _runtime = None


def current_runtime() -> Runtime | None:
    return _runtime


def describe_context(context: Any) -> dict[str, Any] | None:
    """Extract the serializable parts of an invocation context."""
    if context is None:
        return None
    if isinstance(context, Mapping):
        return dict(context)
    described = {name: getattr(context, name) for name in _CONTEXT_ATTRIBUTES if hasattr(context, name)}
    return described or None


def request_identity(context: Any) -> str:
    """Client identity for this instance: the first request's id."""
    if isinstance(context, Mapping):
        request_id = context.get("aws_request_id")
    else:
        request_id = getattr(context, "aws_request_id", None)
    return str(request_id) if request_id else uuid.uuid4().hex


def _invoke(event: Mapping[str, Any], context: Any, mode: IngestMode) -> str:
    runtime = _runtime
    if runtime is None:
        try:
            runtime = configure_runtime()
        except SettingsError as e:
            configure_logging(json_output=True, level="ERROR")
            logger.error("settings_invalid", error=str(e))
            return IngestOutcome.initialization_failure().status

    outcome = runtime.handler.handle(
        runtime.session,
        event,
        identity=request_identity(context),
        mode=mode,
        context=describe_context(context),
    )
    return outcome.status


def handle_request(event: Mapping[str, Any], context: Any = None) -> str:
    """Ingest the whole event as one row."""
    return _invoke(event, context, IngestMode.SINGLE)


def handle_request_as_rows(event: Mapping[str, Any], context: Any = None) -> str:
    """Ingest each event entry as its own row."""
    return _invoke(event, context, IngestMode.MULTI)
