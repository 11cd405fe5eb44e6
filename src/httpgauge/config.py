"""Configuration file loading and validation.

The file is YAML and is validated with pydantic before anything is
scheduled; any problem surfaces as a single ConfigError.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from httpgauge.adapters.logging import LOG_LEVELS
from httpgauge.core.errors import ConfigError, ScheduleError
from httpgauge.core.models import ExtractorKind, Rule, Target
from httpgauge.core.schedule import parse_schedule

DEFAULT_ADDRESS = "0.0.0.0:3000"


class RuleConfig(BaseModel):
    """How to process fetched data into metrics."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(
        min_length=1,
        description="The rule's name and that of any metrics generated. "
        "Should be snake_case.",
    )
    extract: str = Field(
        description="Instructions for the selected extractor: a jq query or a "
        "regex pattern."
    )


class TargetConfig(BaseModel):
    """One URL fetched on its own schedule."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="The target's name, used in logs.")
    url: str = Field(description="The URL that should be fetched.")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Additional headers. User-Agent is set by default.",
    )
    cron: str = Field(
        validation_alias=AliasChoices("cron", "schedule"),
        description="When the target should be fetched: a cron expression "
        "(5 fields, or 6 with leading seconds) or an English phrase such as "
        "'every 5 minutes'. Evaluated in UTC.",
    )
    extractor: ExtractorKind = Field(
        default=ExtractorKind.JQ,
        description="Which engine processes the response.",
    )
    timeout: float = Field(
        default=10.0, gt=0, description="Fetch timeout in seconds."
    )
    rules: list[RuleConfig] = Field(default_factory=list)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value

    @field_validator("cron")
    @classmethod
    def _check_schedule(cls, value: str) -> str:
        try:
            parse_schedule(value)
        except ScheduleError as e:
            raise ValueError(str(e)) from e
        return value

    def to_target(self) -> Target:
        return Target(
            name=self.name,
            url=self.url,
            schedule=self.cron,
            extractor=self.extractor,
            headers=dict(self.headers),
            rules=tuple(Rule(name=r.name, extract=r.extract) for r in self.rules),
            timeout=self.timeout,
        )


class StoreConfig(BaseModel):
    """Where gauges are kept."""

    model_config = ConfigDict(extra="forbid")

    backend: Literal["memory", "sqlite"] = "memory"
    path: str = Field(default=":memory:", description="SQLite database path.")


class Config(BaseModel):
    """Top-level configuration."""

    model_config = ConfigDict(extra="forbid")

    log_level: str = Field(default="info", description="How verbose logging should be.")
    address: str = Field(
        default=DEFAULT_ADDRESS, description="The host:port to bind to."
    )
    scrape_on_startup: bool = Field(
        default=False,
        description="Scrape each target once while starting up.",
    )
    store: StoreConfig = Field(default_factory=StoreConfig)
    targets: list[TargetConfig]

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        if value.lower() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return value.lower()

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        _split_address(value)
        return value

    @property
    def host(self) -> str:
        return _split_address(self.address)[0]

    @property
    def port(self) -> int:
        return _split_address(self.address)[1]

    def to_targets(self) -> list[Target]:
        return [target.to_target() for target in self.targets]


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"address must be host:port, got {address!r}")
    return host.strip("[]"), int(port)


def parse_config(data: Any) -> Config:
    """Validate already-decoded configuration data.

    Raises:
        ConfigError: The data does not describe a valid configuration.
    """
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration:\n{e}") from e


def load_config(path: str | Path) -> Config:
    """Read and validate a YAML configuration file.

    Raises:
        ConfigError: The file is unreadable, not YAML, or invalid.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"failed to open config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config file {path}: {e}") from e
    return parse_config(data)


def config_json_schema() -> dict[str, Any]:
    """Return the JSON schema of the configuration file."""
    return Config.model_json_schema()
