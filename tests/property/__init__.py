# tests/property/__init__.py
"""Property-based tests for streamingest.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of. The offset-token sequence and
the commit-confirmation poll are the two places where a missed edge case
means silent data loss.

Test categories:
- engine/: Row assembly, sequencing, commit confirmation, invocation state
"""
