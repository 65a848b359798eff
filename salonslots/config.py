"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import Literal

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidInputError
from .domain.models import parse_clock_time


class ScheduleConfig(BaseModel):
    """Slot policy and fallback hours."""
    slot_interval_minutes: int = 60
    default_open_time: str = "09:00"
    default_close_time: str = "17:00"
    booking_horizon_days: int = 30

    @field_validator("slot_interval_minutes", "booking_horizon_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts are positive."""
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("default_open_time", "default_close_time")
    @classmethod
    def validate_clock(cls, value: str) -> str:
        """Validate HH:MM format."""
        try:
            parse_clock_time(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "ScheduleConfig":
        """Ensure the default window opens before it closes."""
        if self.get_open_time() >= self.get_close_time():
            raise ValueError("default_close_time must be later than default_open_time")
        return self

    def get_open_time(self) -> time:
        """Get default opening time as time object."""
        return parse_clock_time(self.default_open_time)

    def get_close_time(self) -> time:
        """Get default closing time as time object."""
        return parse_clock_time(self.default_close_time)


class DataSourceConfig(BaseModel):
    """Where salon hours, services and bookings are read from."""
    kind: Literal["json", "rest"] = "json"
    path: str = "salon_data.json"
    url: str = ""
    api_key: str = ""
    timeout_seconds: int = 30

    @model_validator(mode="after")
    def validate_kind_fields(self) -> "DataSourceConfig":
        """Ensure the chosen source has what it needs."""
        if self.kind == "rest" and not (self.url and self.api_key):
            raise ValueError("data_source of kind 'rest' needs both url and api_key")
        if self.kind == "json" and not self.path:
            raise ValueError("data_source of kind 'json' needs a path")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    salon_name: str = "Salon"
    timezone: str = "America/New_York"
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    data_source: DataSourceConfig = Field(default_factory=DataSourceConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)

        # Relative JSON data paths are resolved against the config file
        data_path = Path(config.data_source.path)
        if config.data_source.kind == "json" and not data_path.is_absolute():
            config.data_source.path = str(config_path.parent / data_path)

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
