"""Configuration for the propagation engine.

A single YAML file can carry both the propagation switches and the working
calendar definition:

    propagation:
      resequence_siblings: true
      default_task_hours: 8
    calendar:
      working_days: [monday, tuesday, wednesday, thursday, friday]
      morning: ["08:00", "12:00"]
      afternoon: ["13:00", "17:00"]
      exceptions:
        - start: 2025-12-25
          name: Christmas
"""

from __future__ import annotations

from datetime import date, time
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .work_calendar import WEEKDAY_NAMES, CalendarException, WorkingCalendar

MIN_WEEKDAY_ABBREVIATION = 3  # "mon", "tue", ...
MINUTES_PER_HOUR = 60


class PropagationConfig(BaseModel):
    """Switches for the optional propagation passes."""

    reconcile_containers: bool = True  # Roll every container up to its children before resolving
    resequence_siblings: bool = True  # FS+1 re-sequencing of siblings of moved tasks
    classify_milestones: bool = True  # Flag zero-duration tasks after propagation
    # Hours for tasks with neither an estimate nor dates (None = one calendar day)
    default_task_hours: float | None = Field(default=None, ge=0)


class CalendarExceptionConfig(BaseModel):
    """A holiday or extra working day range."""

    start: date
    end: date | None = None
    working: bool = False
    name: str = ""


class CalendarConfig(BaseModel):
    """Working calendar as written in config files."""

    working_days: list[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4])
    morning: tuple[time, time] = (time(8, 0), time(12, 0))
    afternoon: tuple[time, time] = (time(13, 0), time(17, 0))
    exceptions: list[CalendarExceptionConfig] = Field(
        default_factory=list[CalendarExceptionConfig]
    )
    max_search_days: int = 366

    @field_validator("working_days", mode="before")
    @classmethod
    def parse_weekdays(cls, v: Any) -> list[int]:
        """Accept weekday names ("monday", "mon") as well as numbers (Monday = 0)."""
        if not isinstance(v, list):
            v = [v]
        result: list[int] = []
        for item in v:
            if isinstance(item, int):
                result.append(item)
                continue
            name = str(item).strip().lower()
            matches = [i for i, day in enumerate(WEEKDAY_NAMES) if day.startswith(name)]
            if len(name) < MIN_WEEKDAY_ABBREVIATION or not matches:
                raise ValueError(f"Unknown weekday: {item!r}")
            result.append(matches[0])
        return result

    @field_validator("morning", "afternoon", mode="before")
    @classmethod
    def parse_shift(cls, v: Any) -> Any:
        """Accept unquoted YAML times, which PyYAML reads as minutes (13:00 -> 780)."""
        if isinstance(v, (list, tuple)):
            return [
                time(item // MINUTES_PER_HOUR, item % MINUTES_PER_HOUR)
                if isinstance(item, int)
                else item
                for item in v  # type: ignore[union-attr]
            ]
        return v

    def to_calendar(self) -> WorkingCalendar:
        """Build the immutable calendar used by the engine."""
        return WorkingCalendar(
            working_weekdays=frozenset(self.working_days),
            morning_start=self.morning[0],
            morning_end=self.morning[1],
            afternoon_start=self.afternoon[0],
            afternoon_end=self.afternoon[1],
            exceptions=tuple(
                CalendarException(
                    start=exc.start, end=exc.end, is_working=exc.working, name=exc.name
                )
                for exc in self.exceptions
            ),
            max_search_days=self.max_search_days,
        )


class EngineConfig(BaseModel):
    """Top-level configuration file contents."""

    propagation: PropagationConfig = PropagationConfig()
    calendar: CalendarConfig = CalendarConfig()


def load_config(config_path: Path | str) -> EngineConfig:
    """Load engine configuration from a YAML file.

    Args:
        config_path: Path to the YAML file

    Returns:
        EngineConfig with defaults for any missing section

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is empty or invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with config_path.open(encoding="utf-8") as f:
        data: dict[str, Any] | None = yaml.safe_load(f)

    if not data:
        raise ValueError("Empty configuration file")
    if not isinstance(data, dict):
        raise ValueError("Configuration must be a mapping at the root level")

    unknown = set(data) - set(EngineConfig.model_fields)
    if unknown:
        raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown))}")

    return EngineConfig.model_validate(data)
