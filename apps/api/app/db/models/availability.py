"""Availability models: weekly template and date overrides."""

import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    Index,
    Integer,
    String,
    Time,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class WeeklyAvailabilityBlock(Base):
    """
    Weekly availability block (e.g., "Monday 09:00-12:00").

    Uses business weekday: Monday=0, Sunday=6.
    Several blocks per weekday are allowed (split shifts).
    """

    __tablename__ = "weekly_availability_blocks"
    __table_args__ = (
        Index("idx_weekly_availability_weekday", "weekday", "is_active"),
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_valid_weekday"),
        CheckConstraint("start_time < end_time", name="ck_weekly_block_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    weekday: Mapped[int] = mapped_column(Integer, nullable=False)

    # Wall clock in the practice timezone
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )


class DateAvailabilityOverride(Base):
    """
    Date-specific availability that replaces the weekly template wholesale.

    One row per open block on that date, or a single "closed" row with
    start_time = end_time = NULL (vacation, holiday).
    """

    __tablename__ = "date_availability_overrides"
    __table_args__ = (
        Index("idx_date_availability_date", "override_date"),
        CheckConstraint(
            "(start_time IS NULL AND end_time IS NULL) OR "
            "(start_time IS NOT NULL AND end_time IS NOT NULL AND start_time < end_time)",
            name="ck_override_slot_or_closed",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    override_date: Mapped[date] = mapped_column(Date, nullable=False)

    start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    @property
    def is_closed(self) -> bool:
        return self.start_time is None and self.end_time is None
