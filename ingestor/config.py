"""Configuration: frozen dataclass built from defaults, YAML, env vars and CLI."""

import logging
import os
from dataclasses import asdict, dataclass

import yaml

logger = logging.getLogger(__name__)

# (section, key) in the YAML file for each config field
YAML_KEYS = {
    "buffer_seconds": ("resequencer", "buffer_seconds"),
    "alert_threshold": ("alerts", "threshold"),
    "alert_window": ("alerts", "window_seconds"),
    "stats_period": ("stats", "period_seconds"),
    "workers": ("dispatcher", "workers"),
    "log_level": ("logging", "level"),
}

ENV_VARS = {
    "buffer_seconds": "BUFFER_SECONDS",
    "alert_threshold": "ALERT_THRESHOLD",
    "alert_window": "ALERT_WINDOW",
    "stats_period": "STATS_PERIOD",
    "workers": "WORKERS",
    "log_level": "LOG_LEVEL",
}


@dataclass(frozen=True)
class IngestorConfig:
    buffer_seconds: int = 2
    alert_threshold: float = 10
    alert_window: int = 120
    stats_period: int = 10
    workers: int = 2
    log_level: str = "WARNING"

    def __post_init__(self):
        if self.buffer_seconds < 0:
            raise ValueError("buffer_seconds must not be negative")
        if self.alert_threshold < 0:
            raise ValueError("alert_threshold must not be negative")
        if self.alert_window <= 0:
            raise ValueError("alert_window must be positive")
        if self.stats_period <= 0:
            raise ValueError("stats_period must be positive")
        if self.workers <= 0:
            raise ValueError("workers must be positive")

    @classmethod
    def from_env(cls, base: "IngestorConfig | None" = None) -> "IngestorConfig":
        """Overlay environment variables on *base* (defaults when None)."""
        values = asdict(base or cls())
        for name, var in ENV_VARS.items():
            raw = os.environ.get(var)
            if raw is not None:
                values[name] = _coerce(name, raw)
        return cls(**values)

    def with_overrides(self, **overrides) -> "IngestorConfig":
        """Return a copy with every non-None override applied."""
        values = asdict(self)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return IngestorConfig(**values)


def _coerce(name: str, raw):
    if name == "log_level":
        return str(raw).upper()
    if name == "alert_threshold":
        return float(raw)
    return int(raw)


def load_yaml_config(path: str | None) -> dict:
    """Load a YAML config file. Returns an empty dict if missing or invalid."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError:
        logger.warning("Invalid YAML in %s, using defaults", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def from_yaml_data(data: dict) -> IngestorConfig:
    """Build a config from parsed YAML, keeping defaults for absent keys."""
    values = {}
    for name, (section, key) in YAML_KEYS.items():
        block = data.get(section)
        if isinstance(block, dict) and block.get(key) is not None:
            values[name] = _coerce(name, block[key])
    return IngestorConfig(**values)


def load_config(config_path: str | None = None, **cli_overrides) -> IngestorConfig:
    """Resolve the final config. Precedence: CLI > env > YAML > defaults."""
    config = from_yaml_data(load_yaml_config(config_path))
    config = IngestorConfig.from_env(config)
    return config.with_overrides(**cli_overrides)
