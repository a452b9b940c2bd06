# tests/property/engine/test_rows_properties.py
"""Property-based tests for row assembly.

Properties:
- Single mode yields exactly one row for any event
- Multi mode yields one row per entry, in key order
- Every row has exactly the four landing-table columns
- Entry content survives re-serialization unchanged
"""

from __future__ import annotations

import json

from hypothesis import given

from streamingest.engine.rows import ROW_FIELDS, assemble_multi, assemble_single
from tests.property.conftest import events
from tests.property.settings import STANDARD_SETTINGS

ENV = {"AWS_REGION": "us-east-1"}


class TestAssemblyProperties:
    @given(event=events)
    @STANDARD_SETTINGS
    def test_single_mode_always_one_row(self, event: dict[str, str]) -> None:
        rows = assemble_single(event, ENV)

        assert len(rows) == 1
        assert tuple(rows[0]) == ROW_FIELDS
        assert json.loads(rows[0]["EVENT"]) == event

    @given(event=events)
    @STANDARD_SETTINGS
    def test_multi_mode_one_row_per_entry(self, event: dict[str, str]) -> None:
        rows = assemble_multi(event, ENV)

        assert len(rows) == len(event)
        assert [row["EVENT_TYPE"] for row in rows] == list(event)
        assert all(tuple(row) == ROW_FIELDS for row in rows)

    @given(event=events)
    @STANDARD_SETTINGS
    def test_multi_mode_preserves_entry_values(self, event: dict[str, str]) -> None:
        rows = assemble_multi(event, ENV)

        for row, (_, serialized) in zip(rows, event.items(), strict=True):
            assert json.loads(row["EVENT"]) == json.loads(serialized)
