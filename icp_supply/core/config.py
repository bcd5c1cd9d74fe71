"""Configuration for endpoints, retry policy and file locations.

Values come from (lowest to highest precedence) built-in defaults, a
``.env`` file, environment variables and an optional YAML file.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .types import MetricEndpoint

IC_API = "https://ic-api.internetcomputer.org/api/v3"
LEDGER_API = "https://ledger-api.internetcomputer.org"
GOVERNANCE_METRICS = f"{IC_API}/governance-metrics"

DEFAULT_ENDPOINTS: dict[str, str] = {
    MetricEndpoint.TOTAL_SUPPLY.value: f"{LEDGER_API}/supply/total/latest",
    MetricEndpoint.CIRCULATING_SUPPLY.value: f"{LEDGER_API}/supply/circulating/latest",
    MetricEndpoint.DAILY_STATS.value: f"{IC_API}/daily-stats?format=json",
    MetricEndpoint.DISSOLVING_NEURONS.value: (
        f"{GOVERNANCE_METRICS}/governance_dissolving_neurons_e8s"
    ),
    MetricEndpoint.LOCKED_NEURONS.value: (
        f"{GOVERNANCE_METRICS}/governance_not_dissolving_neurons_e8s"
    ),
    MetricEndpoint.TOTAL_MATURITY.value: (
        f"{GOVERNANCE_METRICS}/governance_total_maturity_e8s_equivalent"
    ),
    MetricEndpoint.DISSOLVING_MATURITY.value: (
        f"{GOVERNANCE_METRICS}/governance_dissolving_neurons_staked_maturity_e8s_equivalent"
    ),
    MetricEndpoint.LOCKED_MATURITY.value: (
        f"{GOVERNANCE_METRICS}/governance_not_dissolving_neurons_staked_maturity_e8s_equivalent"
    ),
}

DEFAULT_SNAPSHOT_PATH = Path("public") / "metrics.json"

ENV_VARS = {
    "max_retries": "ICP_SUPPLY_MAX_RETRIES",
    "retry_delay": "ICP_SUPPLY_RETRY_DELAY",
    "timeout": "ICP_SUPPLY_TIMEOUT",
    "snapshot_path": "ICP_SUPPLY_SNAPSHOT_PATH",
    "stale_after_seconds": "ICP_SUPPLY_STALE_AFTER",
}

FIELD_CASTS = {
    "max_retries": int,
    "retry_delay": float,
    "timeout": float,
    "snapshot_path": Path,
    "stale_after_seconds": int,
}


@dataclass
class DashboardConfig:
    """Settings for fetching, persisting and refreshing the supply tree."""

    endpoints: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ENDPOINTS))

    # Retry policy (per endpoint)
    max_retries: int = 3
    retry_delay: float = 1.0  # Seconds, multiplied by the attempt number
    timeout: float = 10.0  # Seconds per attempt

    snapshot_path: Path = DEFAULT_SNAPSHOT_PATH
    stale_after_seconds: int = 3600  # Refresh when data is older than this

    def __post_init__(self) -> None:
        self.snapshot_path = Path(self.snapshot_path)
        self.validate()

    def validate(self) -> None:
        """Reject settings the fetch layer cannot honour."""
        if self.max_retries < 1:
            raise ConfigurationError("max_retries", f"must be >= 1, got {self.max_retries}")
        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay", f"must be >= 0, got {self.retry_delay}")
        if self.timeout <= 0:
            raise ConfigurationError("timeout", f"must be > 0, got {self.timeout}")
        if self.stale_after_seconds < 0:
            raise ConfigurationError(
                "stale_after_seconds", f"must be >= 0, got {self.stale_after_seconds}"
            )

        missing = [e.value for e in MetricEndpoint if e.value not in self.endpoints]
        if missing:
            raise ConfigurationError("endpoints", f"missing URLs for {', '.join(missing)}")

    @classmethod
    def from_env(cls) -> "DashboardConfig":
        """Load configuration from environment variables."""
        return cls(**cls._overrides_from_env())

    @staticmethod
    def _overrides_from_env() -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for name, var in ENV_VARS.items():
            raw = os.getenv(var)
            if raw is None or raw == "":
                continue
            try:
                overrides[name] = FIELD_CASTS[name](raw)
            except ValueError as e:
                raise ConfigurationError(var, f"invalid value {raw!r}") from e
        return overrides

    @classmethod
    def from_yaml(
        cls, config_file: Path, base: Optional[dict[str, Any]] = None
    ) -> "DashboardConfig":
        """
        Load configuration from a YAML file.

        The file may set any field; ``endpoints`` entries are merged over the
        defaults so a single URL can be overridden.

        Args:
            config_file: Path to YAML config
            base: Overrides applied before the file (e.g. from the environment)

        Returns:
            DashboardConfig instance
        """
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigurationError(str(config_file), "config file not found")

        with open(config_file, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(str(config_file), f"invalid YAML: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(str(config_file), "top level must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ConfigurationError(
                str(config_file), f"unknown settings: {', '.join(sorted(unknown))}"
            )

        overrides = raw.pop("endpoints", None) or {}
        if not isinstance(overrides, dict) or not all(
            isinstance(url, str) for url in overrides.values()
        ):
            raise ConfigurationError("endpoints", "must map endpoint names to URL strings")

        settings = dict(base or {})
        for name, value in raw.items():
            if value is None:
                continue
            try:
                settings[name] = FIELD_CASTS[name](value)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(name, f"invalid value {value!r}") from e

        endpoints = dict(DEFAULT_ENDPOINTS)
        endpoints.update(overrides)
        settings["endpoints"] = endpoints
        return cls(**settings)

    @classmethod
    def load(
        cls,
        env_file: Optional[Path] = None,
        config_file: Optional[Path] = None,
    ) -> "DashboardConfig":
        """
        Load configuration from .env file, environment variables and YAML.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the current directory.
            config_file: Optional YAML file applied last

        Returns:
            DashboardConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            env_path = Path.cwd() / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        if config_file:
            return cls.from_yaml(config_file, base=cls._overrides_from_env())
        return cls.from_env()
