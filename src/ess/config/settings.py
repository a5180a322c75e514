"""Application settings: pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file values (when loaded through ``Settings.from_yaml``)
  2. Environment variables (ESS_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")


class SearchSettings(BaseModel):
    """SRU backend and request defaulting configuration."""

    bases: Annotated[list[str], NoDecode] = Field(default_factory=list, description="Bases a caller may search")
    sru_url: str = Field(default="http://localhost:9000", description="SRU search proxy base URL")
    max_page_size: int = Field(default=50, ge=1, description="Upper bound and default for rows")
    id_prefix: str = Field(default="base: ", description="Prefix prepended to every record identifier")
    timeout: float = Field(default=30.0, gt=0, description="Backend HTTP timeout in seconds")

    @field_validator("bases", mode="before")
    @classmethod
    def _parse_bases(cls, v: Any) -> list[str]:
        """Parse bases from JSON string, comma-separated string (env var) or list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(b) for b in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            return [b.strip() for b in v.split(",") if b.strip()]
        return list(v)


class FormattingSettings(BaseModel):
    """Formatting service and worker pool configuration."""

    url: str = Field(default="http://localhost:9100/format", description="Formatting service endpoint")
    timeout: float = Field(default=30.0, gt=0, description="Formatting HTTP timeout in seconds")
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Max concurrent formatting units across all requests (None = unbounded)",
    )
    deadline_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-request deadline for formatting all records (None = no deadline)",
    )
    error_message: str = Field(default="Internal Server Error", description="Text of record error placeholders")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the ESS_ prefix.
    Nested settings use double underscores: ESS_SERVER__PORT=9090

    Example:
        ESS_SEARCH__BASES=bibdk,danbib
        ESS_SEARCH__SRU_URL=http://metaproxy:9000
        ESS_FORMATTING__URL=http://openformat/api/format
    """

    model_config = {
        "env_prefix": "ESS_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="ESS", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    formatting: FormattingSettings = Field(default_factory=FormattingSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are passed as init arguments; sections the
        file omits still fall back to environment variables and defaults.

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
