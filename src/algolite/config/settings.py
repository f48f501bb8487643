"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (ALGOLIA_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class TransportSettings(BaseModel):
    """Request dispatch configuration.

    Timeouts are the values for the first attempt; attempt ``k`` (0-based)
    uses ``timeout * (k + 1)``.
    """

    provider: str = Field(default="algolia", description="Provider label used to build host names")
    connect_timeout_ms: int = Field(default=3000, description="Connect timeout of the first attempt in ms")
    read_timeout_ms: int = Field(default=30000, description="Receive timeout of the first attempt in ms")
    max_attempts: int = Field(default=4, ge=1, le=4, description="Attempts before the cluster is reported unreachable")


class TaskSettings(BaseModel):
    """Task completion polling configuration."""

    poll_interval_ms: int = Field(default=1000, description="Delay between task status polls in ms")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root settings.

    Credentials come from ``ALGOLIA_APPLICATION_ID`` and ``ALGOLIA_API_KEY``.
    Nested settings use double underscores.

    Example:
        ALGOLIA_APPLICATION_ID=LATENCY
        ALGOLIA_API_KEY=6be0576ff61c053d5f9a3225e2a90f76
        ALGOLIA_TASKS__POLL_INTERVAL_MS=250
    """

    model_config = {
        "env_prefix": "ALGOLIA_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    application_id: str = Field(default="", description="Algolia application id")
    api_key: str = Field(default="", description="Algolia API key")

    transport: TransportSettings = Field(default_factory=TransportSettings)
    tasks: TaskSettings = Field(default_factory=TaskSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
