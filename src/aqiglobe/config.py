"""Engine configuration — every recognized option, resolved once at startup.

Entry points call ``load_dotenv()`` before ``EngineConfig.from_env()`` so a
local ``.env`` file can supply the API keys.
"""

import datetime
import os
from dataclasses import dataclass, field
from typing import Any, Mapping


class ConfigError(Exception):
    """Invalid or inconsistent configuration value."""


def _current_year() -> int:
    return datetime.date.today().year


@dataclass(frozen=True)
class EngineConfig:
    waqi_token: str = ""  # https://aqicn.org/api/, live feed skipped when empty
    waqi_base_url: str = "https://api.waqi.info/feed"
    prediction_api_key: str = ""  # Remote prediction provider skipped when empty
    prediction_base_url: str = "https://api.dedaluslab.ai"
    reference_year: int = field(default_factory=_current_year)
    min_year: int = 2023
    max_year: int = 2035
    min_speed: float = 0.1
    max_speed: float = 10000.0
    default_speed: float = 1000.0
    start_real_time: bool = False
    refresh_interval: float = 300.0  # Seconds between live refreshes
    request_timeout: float = 10.0  # Seconds, per HTTP request
    globe_radius: float = 5.0

    def __post_init__(self) -> None:
        if self.min_year > self.max_year:
            raise ConfigError(f"min_year {self.min_year} > max_year {self.max_year}")
        if not 0 < self.min_speed <= self.max_speed:
            raise ConfigError(
                f"speed bounds must satisfy 0 < min <= max: [{self.min_speed}, {self.max_speed}]"
            )
        if not self.min_speed <= self.default_speed <= self.max_speed:
            raise ConfigError(
                f"default_speed {self.default_speed} outside [{self.min_speed}, {self.max_speed}]"
            )
        if self.refresh_interval <= 0:
            raise ConfigError(f"refresh_interval must be > 0: {self.refresh_interval}")
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be > 0: {self.request_timeout}")
        if self.globe_radius <= 0:
            raise ConfigError(f"globe_radius must be > 0: {self.globe_radius}")

    @property
    def prediction_enabled(self) -> bool:
        return bool(self.prediction_api_key)

    def clamp_year(self, year: int) -> int:
        return max(self.min_year, min(self.max_year, int(year)))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EngineConfig":
        """Build a config from environment variables; unset variables keep defaults.

        Raises:
            ConfigError: On unparsable numbers or inconsistent bounds.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}
        for var, name, parse in _ENV_OPTIONS:
            raw = env.get(var)
            if raw is None or raw.strip() == "":
                continue
            try:
                kwargs[name] = parse(raw.strip())
            except ValueError as e:
                raise ConfigError(f"{var}={raw!r}: {e}") from e
        return cls(**kwargs)

    def public_view(self) -> dict[str, Any]:
        """Config for display — secrets replaced by presence flags."""
        return {
            "waqi_base_url": self.waqi_base_url,
            "prediction_base_url": self.prediction_base_url,
            "reference_year": self.reference_year,
            "min_year": self.min_year,
            "max_year": self.max_year,
            "speed_bounds": (self.min_speed, self.max_speed),
            "refresh_interval": self.refresh_interval,
            "has_waqi_token": bool(self.waqi_token),
            "has_prediction_key": bool(self.prediction_api_key),
        }


def _parse_bool(raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw}")


_ENV_OPTIONS: tuple[tuple[str, str, Any], ...] = (
    ("WAQI_TOKEN", "waqi_token", str),
    ("WAQI_BASE_URL", "waqi_base_url", str),
    ("PREDICTION_API_KEY", "prediction_api_key", str),
    ("PREDICTION_BASE_URL", "prediction_base_url", str),
    ("REFERENCE_YEAR", "reference_year", int),
    ("MIN_PREDICTION_YEAR", "min_year", int),
    ("MAX_PREDICTION_YEAR", "max_year", int),
    ("MIN_SPEED", "min_speed", float),
    ("MAX_SPEED", "max_speed", float),
    ("DEFAULT_SPEED", "default_speed", float),
    ("REAL_TIME_ROTATION", "start_real_time", _parse_bool),
    ("REFRESH_INTERVAL_SECONDS", "refresh_interval", float),
    ("REQUEST_TIMEOUT_SECONDS", "request_timeout", float),
    ("GLOBE_RADIUS", "globe_radius", float),
)
