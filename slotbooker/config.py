"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Literal, Optional

import pendulum
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import ConfigurationError


class ScheduleConfig(BaseModel):
    """
    The bookable window of a day.

    Slots start every full hour from ``start_hour`` up to, but excluding,
    ``end_hour``. Immutable once loaded.
    """
    model_config = ConfigDict(frozen=True)

    start_hour: int = 9
    end_hour: int = 15
    timezone: str = "Europe/Paris"

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(v)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {v}") from exc
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "ScheduleConfig":
        """Ensure the window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    @property
    def slot_count(self) -> int:
        """Number of one-hour slots in the window."""
        return self.end_hour - self.start_hour


class StoreConfig(BaseModel):
    """Which booking store backend to use and how to reach it."""
    backend: Literal["memory", "json", "firestore"] = "json"
    path: Path = Path("bookings.json")  # json backend
    project_id: Optional[str] = None  # firestore backend
    api_key: Optional[str] = None
    collection: str = "bookings"
    timeout: int = 30  # seconds; HTTP timeout or json file lock wait

    @model_validator(mode="after")
    def validate_backend_settings(self) -> "StoreConfig":
        """Ensure the selected backend has what it needs."""
        if self.backend == "firestore" and not self.project_id:
            raise ValueError("store.project_id is required for the firestore backend")
        if self.timeout <= 0:
            raise ValueError("store.timeout must be greater than zero")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    global_message: Optional[str] = None

    def get_schedule_config(self) -> ScheduleConfig:
        """Return the bookable window for this session."""
        return self.schedule

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``store.path`` is resolved against the directory holding
        the config file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigurationError: If config is invalid
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
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        try:
            config = cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {config_path}:\n{exc}") from exc

        if not config.store.path.is_absolute():
            resolved = config_path.parent / config.store.path
            config = config.model_copy(
                update={"store": config.store.model_copy(update={"path": resolved})}
            )

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
