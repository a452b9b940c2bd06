# src/streamingest/core/config.py
"""
Configuration schema and loading for streamingest.

Uses Pydantic for validation. Settings are frozen (immutable) after
construction and come from one of two places:

- The hosting function's environment (load_settings_from_env), using the
  unprefixed lowercase variable names the function is deployed with.
- A YAML file plus STREAMINGEST_* overrides via Dynaconf (load_settings),
  used by the CLI.
"""

import hashlib
import hmac
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from streamingest.contracts.enums import OnErrorOption
from streamingest.contracts.errors import SettingsError
from streamingest.contracts.streaming import OpenChannelRequest

DEFAULT_CHANNEL_NAME = "AWS_CHANNEL"
DEFAULT_MAX_RETRIES = 20
DEFAULT_POLL_INTERVAL_SECONDS = 1.0

_FINGERPRINT_KEY_VAR = "STREAMINGEST_FINGERPRINT_KEY"

_TRUE_FLAGS = frozenset({"true", "1", "yes", "on"})


class ConnectionSettings(BaseModel):
    """Credentials and endpoint for the streaming client.

    The private key is the PKCS#8 body without header, footer or line
    breaks, as pasted into the function's configuration.
    """

    model_config = {"frozen": True}

    account: str = Field(min_length=1, description="Account identifier")
    user: str = Field(min_length=1, description="Service user name")
    role: str = Field(min_length=1, description="Role granted insert on the target table")
    warehouse: str = Field(min_length=1, description="Warehouse used by the client")
    private_key: SecretStr = Field(description="Key-pair authentication private key")
    host: str | None = Field(default=None, description="Override for <account>.snowflakecomputing.com")
    scheme: str = "https"
    port: int = Field(default=443, gt=0, lt=65536)

    @field_validator("private_key")
    @classmethod
    def validate_private_key_present(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("private_key must not be empty")
        return v

    @property
    def resolved_host(self) -> str:
        return self.host or f"{self.account}.snowflakecomputing.com"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.resolved_host}:{self.port}"

    def to_properties(self) -> dict[str, str]:
        """Client properties, including the raw private key.

        For building the client only. Never log the result.
        """
        return {
            "scheme": self.scheme,
            "port": str(self.port),
            "host": self.resolved_host,
            "url": self.url,
            "private_key": self.private_key.get_secret_value(),
            "account": self.account,
            "role": self.role,
            "user": self.user,
            "warehouse": self.warehouse,
        }


class DestinationSettings(BaseModel):
    """Target table and the channel opened against it."""

    model_config = {"frozen": True, "populate_by_name": True}

    database: str = Field(min_length=1)
    schema_name: str = Field(min_length=1, alias="schema")
    table: str = Field(min_length=1)
    channel_name: str = Field(default=DEFAULT_CHANNEL_NAME, min_length=1)
    on_error: OnErrorOption = OnErrorOption.CONTINUE

    def open_channel_request(self) -> OpenChannelRequest:
        return OpenChannelRequest(
            channel_name=self.channel_name,
            database=self.database,
            schema_name=self.schema_name,
            table=self.table,
            on_error=self.on_error,
        )


class CommitSettings(BaseModel):
    """Commit-confirmation poll: at most max_retries polls, one interval apart."""

    model_config = {"frozen": True}

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, gt=0, description="Polls made before giving up")
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0, description="Sleep between polls")

    @property
    def timeout_seconds(self) -> float:
        """Upper bound on how long a confirmation can block."""
        return self.max_retries * self.poll_interval_seconds


class IngestSettings(BaseModel):
    """Top-level streamingest configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    connection: ConnectionSettings
    destination: DestinationSettings
    commit: CommitSettings = Field(default_factory=CommitSettings)
    debug: bool = Field(default=False, description="Log events and rows, lower log level to DEBUG")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else "ERROR"


def parse_flag(value: str | None) -> bool:
    """Interpret an environment flag. Anything unrecognised is False."""
    if value is None:
        return False
    return value.strip().lower() in _TRUE_FLAGS


# Environment variable -> (section, field)
_ENV_FIELDS: dict[str, tuple[str, str]] = {
    "account": ("connection", "account"),
    "user": ("connection", "user"),
    "role": ("connection", "role"),
    "warehouse": ("connection", "warehouse"),
    "private_key": ("connection", "private_key"),
    "host": ("connection", "host"),
    "database": ("destination", "database"),
    "schema": ("destination", "schema"),
    "table": ("destination", "table"),
    "channel_name": ("destination", "channel_name"),
    "commit_max_retries": ("commit", "max_retries"),
    "commit_poll_interval_seconds": ("commit", "poll_interval_seconds"),
}


def load_settings_from_env(environ: Mapping[str, str] | None = None) -> IngestSettings:
    """Build settings from the hosting function's environment.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated IngestSettings

    Raises:
        SettingsError: If required variables are missing or invalid
    """
    env = os.environ if environ is None else environ

    raw: dict[str, Any] = {"connection": {}, "destination": {}, "commit": {}}
    for var_name, (section, field_name) in _ENV_FIELDS.items():
        value = env.get(var_name)
        if value is None or value == "":
            continue
        raw[section][field_name] = value

    raw["debug"] = parse_flag(env.get("debug"))
    if "log_json" in env:
        raw["log_json"] = parse_flag(env.get("log_json"))

    try:
        return IngestSettings(**raw)
    except ValidationError as e:
        raise SettingsError(f"Invalid environment configuration: {_summarize_errors(e)}") from e


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values."""

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            default = match.group(2)
            if default is not None:
                return default
            # No env var and no default - keep original (validation will likely reject it)
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def load_settings(config_path: Path) -> IngestSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (STREAMINGEST_*) - highest priority
    2. Config file
    3. Defaults from the Pydantic schema - lowest priority

    Environment variable format: STREAMINGEST_CONNECTION__ACCOUNT for nested keys.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        SettingsError: If the configuration fails validation
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="STREAMINGEST",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; filter out its internal settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "FINGERPRINT_KEY"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _expand_env_vars(raw_config)

    try:
        return IngestSettings(**raw_config)
    except ValidationError as e:
        raise SettingsError(f"Invalid configuration in {config_path}: {_summarize_errors(e)}") from e


def _summarize_errors(error: ValidationError) -> str:
    """One-line summary of validation errors, naming fields but never values."""
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err["loc"])
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def secret_fingerprint(value: str, *, key: bytes | None = None) -> str:
    """Fingerprint a secret so it can be displayed without revealing it.

    Uses HMAC-SHA256 when a key is given or STREAMINGEST_FINGERPRINT_KEY is
    set, plain SHA-256 otherwise. Only the first 16 hex digits are kept.
    """
    if key is None:
        env_key = os.environ.get(_FINGERPRINT_KEY_VAR)
        key = env_key.encode("utf-8") if env_key else None
    if key is None:
        return "sha256:" + hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]
    return "hmac:" + hmac.new(key, value.encode("utf-8"), hashlib.sha256).hexdigest()[:16]


def resolve_config(settings: IngestSettings) -> dict[str, Any]:
    """Convert validated settings to a dict safe to print or log.

    The private key is replaced with its fingerprint.
    """
    config_dict = settings.model_dump(mode="json", by_alias=True)
    config_dict["connection"]["private_key"] = secret_fingerprint(settings.connection.private_key.get_secret_value())
    config_dict["connection"]["host"] = settings.connection.resolved_host
    return config_dict
