"""Availability schemas - weekly template, date overrides and resolution."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


# =============================================================================
# Weekly Template
# =============================================================================

class WeeklyBlockInput(BaseModel):
    """A single weekly availability block."""
    weekday: int = Field(..., ge=0, le=6, description="Monday=0, Sunday=6")
    start_time: str = Field(..., pattern=HHMM, description="HH:MM, practice timezone")
    end_time: str = Field(..., pattern=HHMM, description="HH:MM, practice timezone")
    is_active: bool = True

    @model_validator(mode="after")
    def check_order(self) -> "WeeklyBlockInput":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WeeklyTemplateSet(BaseModel):
    """Replace the whole weekly template."""
    blocks: list[WeeklyBlockInput]


class WeeklyBlockRead(BaseModel):
    id: UUID
    weekday: int
    weekday_name: str
    start_time: str
    end_time: str
    is_active: bool


# =============================================================================
# Date Overrides
# =============================================================================

class TimeSlotSchema(BaseModel):
    start_time: str = Field(..., pattern=HHMM)
    end_time: str = Field(..., pattern=HHMM)

    @model_validator(mode="after")
    def check_order(self) -> "TimeSlotSchema":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class DateOverrideSet(BaseModel):
    """Open blocks for a date; an empty list closes the whole day."""
    slots: list[TimeSlotSchema] = Field(default_factory=list)
    reason: str | None = Field(None, max_length=255)


class DateOverrideRead(BaseModel):
    id: UUID
    date: date
    start_time: str | None
    end_time: str | None
    is_closed: bool
    reason: str | None


class DateRangeClose(BaseModel):
    """Close every date of a range (vacation)."""
    date_start: date
    date_end: date
    reason: str | None = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_range(self) -> "DateRangeClose":
        if self.date_end < self.date_start:
            raise ValueError("date_end must not be before date_start")
        if (self.date_end - self.date_start).days > 366:
            raise ValueError("Range cannot exceed one year")
        return self


class DateRangeCloseResponse(BaseModel):
    closed_days: int


# =============================================================================
# Resolution
# =============================================================================

class ResolvedDayRead(BaseModel):
    date: date
    source: str  # template, override, closed
    slots: list[TimeSlotSchema]


class AvailabilityCheckRequest(BaseModel):
    start_time: datetime
    end_time: datetime
    exclude_appointment_id: UUID | None = None


class AvailabilityCheckResponse(BaseModel):
    within_availability: bool
    has_conflict: bool
    bookable: bool
