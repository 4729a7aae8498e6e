"""
Pip Valuation - Configuration.

============================================================
PURPOSE
============================================================
Settings for the rate service, logging and reference data.

Environment variables (a .env file is honoured):
    FX_API_URL          Rate service base URL
    FX_API_KEY          Rate service access key (optional)
    FX_API_TIMEOUT      Per-request timeout in seconds (default 10)
    FX_LIVE_RATES       "false" to use the static table only
    LOG_LEVEL           DEBUG / INFO / WARNING / ERROR
    LOG_FORMAT          text or json
    PIP_REFERENCE_DATA  Path to a reference data YAML file

============================================================
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv


DEFAULT_API_URL = "https://api.exchangerate.host"
DEFAULT_TIMEOUT_SECONDS = 10.0


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


# ============================================================
# RATE SERVICE CONFIGURATION
# ============================================================

@dataclass
class RateServiceConfig:
    """Live rate service settings."""

    base_url: str = DEFAULT_API_URL
    """Base URL of the exchangerate.host compatible service."""

    api_key: str = ""
    """Access key, sent as the access_key parameter."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    """Upper bound for each network attempt."""

    enabled: bool = True
    """When False only the static table is used."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "api_key_set": bool(self.api_key),
            "timeout_seconds": self.timeout_seconds,
            "enabled": self.enabled,
        }


# ============================================================
# CALCULATOR CONFIGURATION
# ============================================================

@dataclass
class CalculatorConfig:
    """Top-level configuration."""

    rate_service: RateServiceConfig = field(default_factory=RateServiceConfig)
    log_level: str = "WARNING"
    log_format: str = "text"
    reference_data_path: Optional[str] = None

    @classmethod
    def from_env(cls) -> "CalculatorConfig":
        """Build from environment variables (after loading .env)."""
        load_dotenv()

        timeout = os.getenv("FX_API_TIMEOUT")
        return cls(
            rate_service=RateServiceConfig(
                base_url=os.getenv("FX_API_URL", DEFAULT_API_URL),
                api_key=os.getenv("FX_API_KEY", ""),
                timeout_seconds=float(timeout) if timeout else DEFAULT_TIMEOUT_SECONDS,
                enabled=_env_bool("FX_LIVE_RATES", True),
            ),
            log_level=os.getenv("LOG_LEVEL", "WARNING"),
            log_format=os.getenv("LOG_FORMAT", "text"),
            reference_data_path=os.getenv("PIP_REFERENCE_DATA") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "rate_service": self.rate_service.to_dict(),
            "log_level": self.log_level,
            "log_format": self.log_format,
            "reference_data_path": self.reference_data_path,
        }


# Default configuration instance
_default_config: Optional[CalculatorConfig] = None


def get_config() -> CalculatorConfig:
    """Get the default configuration, reading the environment on first use."""
    global _default_config
    if _default_config is None:
        _default_config = CalculatorConfig.from_env()
    return _default_config


def set_config(config: Optional[CalculatorConfig]) -> None:
    """Set (or with None, clear) the default configuration."""
    global _default_config
    _default_config = config
