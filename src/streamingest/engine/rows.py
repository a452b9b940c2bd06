"""RowAssembler: inbound event -> rows under the fixed landing-table schema.

Every row carries exactly four columns:

    ENV         serialized environment snapshot
    CONTEXT     serialized invocation context (environment snapshot when
                no context is available)
    EVENT       serialized event, or one event entry
    EVENT_TYPE  type tag for the event container, or the entry's key

The assembler is pure: callers pass the environment snapshot and context in.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from streamingest.contracts.streaming import Row

ROW_FIELDS: tuple[str, ...] = ("ENV", "CONTEXT", "EVENT", "EVENT_TYPE")

# Environment variable names whose values never leave the process.
_SECRET_ENV_NAMES = frozenset({"private_key", "password", "secret", "token", "api_key"})
_SECRET_ENV_SUFFIXES = ("_key", "_secret", "_token", "_password", "_credential")
_REDACTED = "***"


def _is_secret_env_name(name: str) -> bool:
    lowered = name.lower()
    return lowered in _SECRET_ENV_NAMES or lowered.endswith(_SECRET_ENV_SUFFIXES)


def environment_snapshot(environ: Mapping[str, str]) -> dict[str, str]:
    """Copy the environment with secret-looking values redacted."""
    return {name: (_REDACTED if _is_secret_env_name(name) else value) for name, value in environ.items()}


def _pretty(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


def event_type_tag(event: Any) -> str:
    """Type tag for a whole event, e.g. ``dict``."""
    return type(event).__name__


def _base_row(environment: Mapping[str, str], context: Mapping[str, Any] | None) -> Row:
    env = _pretty(dict(environment))
    return {
        "ENV": env,
        "CONTEXT": env if context is None else _pretty(dict(context)),
    }


def normalize_entry(value: Any) -> str:
    """Re-serialize one event entry as compact JSON.

    String values are treated as serialized JSON and must parse.

    Raises:
        json.JSONDecodeError: If a string value is not valid JSON.
    """
    if isinstance(value, str | bytes | bytearray):
        return _compact(json.loads(value))
    return _compact(value)


def assemble_single(
    event: Mapping[str, Any],
    environment: Mapping[str, str],
    context: Mapping[str, Any] | None = None,
) -> list[Row]:
    """Build exactly one row holding the whole event."""
    row = _base_row(environment, context)
    row["EVENT"] = _pretty(dict(event))
    row["EVENT_TYPE"] = event_type_tag(event)
    return [row]


def assemble_multi(
    event: Mapping[str, Any],
    environment: Mapping[str, str],
    context: Mapping[str, Any] | None = None,
) -> list[Row]:
    """Build one row per event entry, in the event's key order.

    All entries are parsed before any row is returned, so a malformed entry
    fails the whole event.

    Raises:
        json.JSONDecodeError: If any string value is not valid JSON.
    """
    rows: list[Row] = []
    for key, value in event.items():
        row = _base_row(environment, context)
        row["EVENT"] = normalize_entry(value)
        row["EVENT_TYPE"] = key
        rows.append(row)
    return rows
