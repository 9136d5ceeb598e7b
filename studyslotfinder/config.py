"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import EngineSettings, TimeConstraints


def _validate_weekdays(value: List[int]) -> List[int]:
    invalid_days = [day for day in value if day not in range(7)]
    if invalid_days:
        raise ValueError(f"Weekdays must be between 0 and 6, got {invalid_days}")
    # Preserve order while removing duplicates
    seen: set[int] = set()
    deduped: List[int] = []
    for day in value:
        if day not in seen:
            deduped.append(day)
            seen.add(day)
    return deduped


class DefaultsConfig(BaseModel):
    """Default settings for slot searches."""
    duration_minutes: int = 50
    break_minutes: int = 10
    start_hour: int | None = None
    end_hour: int | None = None
    study_days: List[int] = Field(default_factory=list)  # empty means every day

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure session duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @field_validator("break_minutes")
    @classmethod
    def validate_break(cls, value: int) -> int:
        if value < 0:
            raise ValueError("break_minutes must not be negative")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int | None) -> int | None:
        """Validate hour is between 0 and 24."""
        if v is not None and not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("study_days")
    @classmethod
    def validate_study_days(cls, value: List[int]) -> List[int]:
        return _validate_weekdays(value)

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the preferred window opens before it closes."""
        if self.start_hour is not None and self.end_hour is not None and self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def to_constraints(self) -> TimeConstraints | None:
        """Preferred study times, or None when nothing is restricted."""
        constraints = TimeConstraints(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            days_of_week=tuple(self.study_days),
        )
        return None if constraints.is_empty else constraints


class EngineConfig(BaseModel):
    """Policies of the scheduling engine."""
    pad_window_edges: bool = False
    probe_step_minutes: int = 15
    prefer_later: bool = True
    max_suggestions: int = 3
    search_horizon_minutes: int = 24 * 60
    max_search_days: int = 14

    @field_validator("probe_step_minutes", "max_suggestions", "max_search_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("search_horizon_minutes")
    @classmethod
    def validate_horizon(cls, value: int) -> int:
        if value < 0:
            raise ValueError("search_horizon_minutes must not be negative")
        return value


class PlannerConfig(BaseModel):
    """Defaults for study-session planning."""
    session_minutes: int = 90
    break_minutes: int = 15
    day_start_hour: int = 9
    day_end_hour: int = 21

    @model_validator(mode="after")
    def validate_planner(self) -> "PlannerConfig":
        if self.session_minutes <= 0:
            raise ValueError("session_minutes must be greater than zero")
        if self.break_minutes < 0:
            raise ValueError("break_minutes must not be negative")
        if not 0 <= self.day_start_hour < self.day_end_hour <= 24:
            raise ValueError("Study hours must satisfy 0 <= day_start_hour < day_end_hour <= 24")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    calendars: List[str] = Field(default_factory=list)
    busy_file: Path | None = None
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    planner: PlannerConfig = Field(default_factory=PlannerConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    def engine_settings(self) -> EngineSettings:
        """Build the domain-level engine settings."""
        return EngineSettings(
            pad_window_edges=self.engine.pad_window_edges,
            probe_step_minutes=self.engine.probe_step_minutes,
            prefer_later=self.engine.prefer_later,
            max_suggestions=self.engine.max_suggestions,
            search_horizon_minutes=self.engine.search_horizon_minutes,
            max_search_days=self.engine.max_search_days,
            default_break_minutes=self.defaults.break_minutes,
        )

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

        # Relative busy files are resolved against the config location
        if config.busy_file is not None and not config.busy_file.is_absolute():
            config.busy_file = config_path.parent / config.busy_file

        return config

    @classmethod
    def load(cls, config_path: Path | None = None) -> "AppConfig":
        """
        Load an explicit config file, or the default one if it exists.

        Without an explicit path and without a default file, built-in
        defaults are used.
        """
        if config_path is not None:
            return cls.load_from_yaml(config_path)

        default_path = get_default_config_path()
        if default_path.exists():
            return cls.load_from_yaml(default_path)

        return cls()


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
