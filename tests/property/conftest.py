# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

Usage:
    from tests.property.conftest import events, serialized_entries

    @given(event=events)
    def test_one_row_per_event(event: dict) -> None:
        ...
"""

from __future__ import annotations

import json

from hypothesis import strategies as st

# JSON-safe leaves (NaN/Infinity excluded, they do not round-trip as JSON)
json_primitives = (
    st.none()
    | st.booleans()
    | st.integers(min_value=-(2**53 - 1), max_value=2**53 - 1)
    | st.floats(allow_nan=False, allow_infinity=False)
    | st.text(max_size=20)
)

json_values = st.recursive(
    json_primitives,
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(max_size=8), children, max_size=4),
    max_leaves=10,
)

event_keys = st.text(min_size=1, max_size=12)

# Inbound events as the platform delivers them: keys to JSON-encoded strings
serialized_entries = json_values.map(lambda value: json.dumps(value))

events = st.dictionaries(event_keys, serialized_entries, max_size=8)

non_empty_events = st.dictionaries(event_keys, serialized_entries, min_size=1, max_size=8)

# Commit lag in polls; the default ceiling is 20 retries
commit_lags = st.integers(min_value=0, max_value=40)

max_retries = st.integers(min_value=1, max_value=30)
