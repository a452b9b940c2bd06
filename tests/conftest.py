# tests/conftest.py
"""Shared test fixtures.

Fixtures build the engine against the in-memory streaming backend
(streamingest.testing.fake_channel) and a MockClock, so no test talks to a
real service or sleeps in real time.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Callable, Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from streamingest.core.config import CommitSettings, ConnectionSettings, DestinationSettings, IngestSettings
from streamingest.engine.clock import MockClock
from streamingest.engine.confirmer import CommitConfirmer
from streamingest.engine.connection import ConnectionManager, IngestSession
from streamingest.engine.ingestion import IngestionHandler
from streamingest.testing.fake_channel import FakeClientFactory

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# Environment as the function is deployed with it.
DEPLOYED_ENV: dict[str, str] = {
    "account": "MY_ACCOUNT",
    "user": "aws_streaming1",
    "role": "STREAMING_AGENT",
    "warehouse": "MYWAREHOUSE",
    "private_key": "MIIEvQIBADANBgkqhkiG9w0BAQEFAASCBKcwggSjAgEAAoIBAQC",
    "database": "MYDB",
    "schema": "MYSCHEMA",
    "table": "AWS_STREAMING_TABLE",
}

# Fixed ENV column content so row assertions are deterministic.
FIXED_ENVIRONMENT: dict[str, str] = {"AWS_REGION": "us-east-1", "private_key": "***"}


def make_settings(**overrides: object) -> IngestSettings:
    """Build IngestSettings with test defaults; keyword overrides go top level."""
    values: dict[str, object] = {
        "connection": ConnectionSettings(
            account="MY_ACCOUNT",
            user="aws_streaming1",
            role="STREAMING_AGENT",
            warehouse="MYWAREHOUSE",
            private_key="test-private-key",
        ),
        "destination": DestinationSettings(database="MYDB", schema="MYSCHEMA", table="AWS_STREAMING_TABLE"),
        "commit": CommitSettings(),
        "log_json": True,
    }
    values.update(overrides)
    return IngestSettings(**values)


@pytest.fixture
def deployed_env() -> dict[str, str]:
    return dict(DEPLOYED_ENV)


@pytest.fixture
def ingest_settings() -> IngestSettings:
    return make_settings()


@pytest.fixture
def clock() -> MockClock:
    return MockClock()


@pytest.fixture
def factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def session() -> IngestSession:
    return IngestSession()


HandlerBuilder = Callable[..., IngestionHandler]


@pytest.fixture
def make_handler(ingest_settings: IngestSettings, clock: MockClock) -> HandlerBuilder:
    """Build an IngestionHandler over a given FakeClientFactory."""

    def _build(client_factory: FakeClientFactory, settings: IngestSettings | None = None) -> IngestionHandler:
        cfg = settings if settings is not None else ingest_settings
        return IngestionHandler(
            cfg,
            ConnectionManager(cfg, client_factory),
            CommitConfirmer(cfg.commit, clock=clock),
            environment=FIXED_ENVIRONMENT,
        )

    return _build


@pytest.fixture(autouse=True)
def _reset_handler_runtime() -> Iterator[None]:
    """Keep the serverless entry module's warm state from leaking between tests."""
    from streamingest.handler import reset_runtime

    reset_runtime()
    yield
    reset_runtime()
