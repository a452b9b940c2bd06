"""
Streamingest: commit-confirmed event ingestion for serverless handlers.

Turns externally-triggered events into rows of a remote append-only
streaming channel and reports success only once the row is durably
committed.
"""

__version__ = "0.3.0"
