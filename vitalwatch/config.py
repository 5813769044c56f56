"""
Configuration management with environment variable support and validation.

Design principles:
- Clinical thresholds are one immutable value passed explicitly to evaluators
- Validation at startup (fail fast)
- Type safety with Pydantic
- Environment-specific logging defaults (console in dev, JSON elsewhere)
"""

import os
from functools import lru_cache
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Load environment variables from .env file
load_dotenv()


class AlertThresholds(BaseModel):
    """Clinical thresholds used by every evaluator. Boundaries are inclusive where noted."""

    model_config = ConfigDict(frozen=True)

    systolic_low: float = Field(default=90.0, description="Fires at or below")
    systolic_high: float = Field(default=180.0, description="Fires at or above")
    diastolic_low: float = Field(default=60.0, description="Fires at or below")
    diastolic_high: float = Field(default=120.0, description="Fires at or above")
    saturation_low: float = Field(default=0.92, ge=0.0, le=1.0, description="Fires strictly below")
    ecg_high: float = Field(default=0.3, description="Fires at or above")
    pressure_delta: float = Field(
        default=10.0, gt=0.0, description="Consecutive difference that fires strictly above"
    )

    # Hypotensive hypoxemia uses strict comparisons on both axes
    correlation_systolic_low: float = Field(default=90.0)
    correlation_saturation_low: float = Field(default=0.92, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def bounds_are_ordered(self) -> "AlertThresholds":
        if self.systolic_low >= self.systolic_high:
            raise ValueError("systolic_low must be below systolic_high")
        if self.diastolic_low >= self.diastolic_high:
            raise ValueError("diastolic_low must be below diastolic_high")
        return self


class MonitoringConfig(BaseModel):
    """Periodic evaluation driver configuration."""

    evaluation_interval_seconds: float = Field(
        default=1.0, gt=0.0, description="Interval between evaluations of every known patient"
    )
    repeat_interval_seconds: float | None = Field(
        default=None, gt=0.0, description="Re-check interval for repeating alerts (None disables)"
    )
    priority_levels: dict[str, str] = Field(
        default_factory=dict, description="Alert condition -> priority level annotation"
    )
    channel_max_size: int = Field(
        default=0, ge=0, description="Alert channel capacity (0 means unbounded)"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


_THRESHOLD_ENV_PREFIX = "THRESHOLD_"


def _threshold_overrides() -> dict[str, float]:
    """Collect THRESHOLD_<FIELD> overrides, e.g. THRESHOLD_SYSTOLIC_LOW=85."""
    overrides: dict[str, float] = {}
    for name in AlertThresholds.model_fields:
        raw = os.getenv(f"{_THRESHOLD_ENV_PREFIX}{name.upper()}")
        if raw is not None:
            overrides[name] = float(raw)
    return overrides


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    repeat_interval = os.getenv("REPEAT_INTERVAL_SECONDS")
    monitoring_config = MonitoringConfig(
        evaluation_interval_seconds=float(os.getenv("EVALUATION_INTERVAL_SECONDS", "1.0")),
        repeat_interval_seconds=float(repeat_interval) if repeat_interval else None,
        channel_max_size=int(os.getenv("ALERT_CHANNEL_MAX_SIZE", "0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        thresholds=AlertThresholds(**_threshold_overrides()),
        monitoring=monitoring_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()
