"""Pydantic schemas for spaces and their weekly hours."""

from __future__ import annotations

import uuid
from datetime import datetime, time
from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DayScheduleBase(BaseModel):
    """Opening window for one weekday (Sunday=0)."""

    day_of_week: int = Field(ge=0, le=6)
    is_open: bool = True
    open_time: time | None = None
    close_time: time | None = None

    @model_validator(mode="after")
    def _check_window(self) -> "DayScheduleBase":
        if not self.is_open:
            return self
        if self.open_time is None or self.close_time is None:
            raise ValueError("open_time and close_time are required on open days")
        # 00:00 as close time means midnight at the end of the day.
        if self.close_time != time.min and self.close_time <= self.open_time:
            raise ValueError("close_time must be after open_time")
        return self


class DayScheduleRead(DayScheduleBase):
    model_config = ConfigDict(from_attributes=True)


def _validate_timezone(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone {value!r}") from exc
    return value


def _validate_unique_days(hours: list[DayScheduleBase] | None) -> None:
    if not hours:
        return
    days = [entry.day_of_week for entry in hours]
    if len(days) != len(set(days)):
        raise ValueError("Each day_of_week may appear only once")


class SpaceBase(BaseModel):
    """Shared space fields."""

    name: str = Field(min_length=1, max_length=255)
    timezone: str = "UTC"
    is_active: bool = True
    always_open: bool = False
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    halfday_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    monthly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    yearly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))

    _check_timezone = field_validator("timezone")(_validate_timezone)


class SpaceCreate(SpaceBase):
    """Payload for creating spaces."""

    hours: list[DayScheduleBase] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_hours(self) -> "SpaceCreate":
        _validate_unique_days(self.hours)
        return self


class SpaceUpdate(BaseModel):
    """Mutable space fields."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    timezone: str | None = None
    is_active: bool | None = None
    always_open: bool | None = None
    hourly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    halfday_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    daily_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    monthly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))
    yearly_rate: Decimal | None = Field(default=None, ge=Decimal("0"))

    _check_timezone = field_validator("timezone")(_validate_timezone)


class SpaceHoursReplace(BaseModel):
    """Replace the weekly schedule of a space."""

    always_open: bool | None = None
    hours: list[DayScheduleBase] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_hours(self) -> "SpaceHoursReplace":
        _validate_unique_days(self.hours)
        return self


class SpaceRead(SpaceBase):
    """Serialized space representation."""

    id: uuid.UUID
    hours: list[DayScheduleRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OperationalStatusRead(BaseModel):
    space_id: uuid.UUID
    is_operational: bool
    effective_status: bool
    reason: str | None = None
    checked_at: datetime
