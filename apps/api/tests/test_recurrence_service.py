"""
Tests for Recurrence Service.

Coverage:
- Weekly/biweekly/monthly stepping from the seed
- Span limits (until, occurrences, hard cap)
- Conflict and availability flagging
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.config import settings
from app.db.enums import RecurringType
from app.db.models import Appointment
from app.services import recurrence_service
from app.services.recurrence_service import add_months
from app.services.scheduling_errors import (
    ConflictError,
    SchedulingValidationError,
    UnavailableSlotError,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Date Arithmetic
# =============================================================================

class TestAddMonths:

    @pytest.mark.parametrize(
        "day,months,expected",
        [
            (date(2024, 1, 31), 1, date(2024, 2, 29)),   # leap year
            (date(2023, 1, 31), 1, date(2023, 2, 28)),
            (date(2024, 1, 31), 3, date(2024, 4, 30)),
            (date(2024, 11, 15), 2, date(2025, 1, 15)),  # year rollover
        ],
    )
    def test_clamps_to_month_end(self, day, months, expected):
        assert add_months(day, months) == expected


# =============================================================================
# Generation
# =============================================================================

class TestGenerateOccurrences:

    def test_weekly_four_weeks(self):
        """Four-week span from a Monday 10:00-11:00 seed yields exactly 4 instances."""
        pairs = recurrence_service.generate_occurrences(
            utc(2024, 6, 3, 10),
            utc(2024, 6, 3, 11),
            RecurringType.WEEKLY,
            until=date(2024, 6, 30),
        )

        assert len(pairs) == 4
        for (prev_start, _), (next_start, next_end) in zip(pairs, pairs[1:]):
            assert next_start - prev_start == timedelta(days=7)
            assert next_end - next_start == timedelta(hours=1)
            assert next_start.hour == 10

    def test_until_is_inclusive(self):
        pairs = recurrence_service.generate_occurrences(
            utc(2024, 6, 3, 10),
            utc(2024, 6, 3, 11),
            RecurringType.WEEKLY,
            until=date(2024, 6, 24),
        )
        assert pairs[-1][0] == utc(2024, 6, 24, 10)

    def test_biweekly_occurrence_count(self):
        pairs = recurrence_service.generate_occurrences(
            utc(2024, 6, 3, 14),
            utc(2024, 6, 3, 15),
            RecurringType.BIWEEKLY,
            occurrences=3,
        )
        assert [p[0] for p in pairs] == [
            utc(2024, 6, 3, 14),
            utc(2024, 6, 17, 14),
            utc(2024, 7, 1, 14),
        ]

    def test_monthly_from_31st_clamps_without_drift(self):
        pairs = recurrence_service.generate_occurrences(
            utc(2024, 1, 31, 9),
            utc(2024, 1, 31, 10),
            RecurringType.MONTHLY,
            occurrences=4,
        )
        assert [p[0].date() for p in pairs] == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]

    def test_first_stop_wins(self):
        pairs = recurrence_service.generate_occurrences(
            utc(2024, 6, 3, 10),
            utc(2024, 6, 3, 11),
            RecurringType.WEEKLY,
            until=date(2024, 12, 31),
            occurrences=2,
        )
        assert len(pairs) == 2

    def test_hard_cap(self, monkeypatch):
        monkeypatch.setattr(settings, "RECURRING_MAX_OCCURRENCES", 5)

        pairs = recurrence_service.generate_occurrences(
            utc(2024, 6, 3, 10),
            utc(2024, 6, 3, 11),
            RecurringType.WEEKLY,
            until=date(2026, 1, 1),
        )
        assert len(pairs) == 5

    def test_span_required(self):
        with pytest.raises(SchedulingValidationError):
            recurrence_service.generate_occurrences(
                utc(2024, 6, 3, 10), utc(2024, 6, 3, 11), RecurringType.WEEKLY
            )

    def test_until_before_seed_rejected(self):
        with pytest.raises(SchedulingValidationError):
            recurrence_service.generate_occurrences(
                utc(2024, 6, 3, 10),
                utc(2024, 6, 3, 11),
                RecurringType.WEEKLY,
                until=date(2024, 6, 1),
            )

    def test_wall_clock_kept_across_dst(self, monkeypatch):
        monkeypatch.setattr(settings, "PRACTICE_TIMEZONE", "Europe/Paris")

        # 10:00 Paris is 09:00 UTC in winter and 08:00 UTC in summer
        pairs = recurrence_service.generate_occurrences(
            utc(2024, 3, 25, 9),
            utc(2024, 3, 25, 10),
            RecurringType.WEEKLY,
            occurrences=2,
        )
        assert [p[0] for p in pairs] == [utc(2024, 3, 25, 9), utc(2024, 4, 1, 8)]


# =============================================================================
# Expansion against the calendar
# =============================================================================

class TestExpandSeries:

    def test_conflicting_instance_is_flagged(self, db, weekday_template, practice_client):
        db.add(Appointment(
            client_id=practice_client.id,
            scheduled_start=utc(2024, 6, 10, 10, 30),
            scheduled_end=utc(2024, 6, 10, 11, 30),
            confirmed=True,
        ))
        db.commit()

        candidates = recurrence_service.expand_series(
            db, utc(2024, 6, 3, 10), utc(2024, 6, 3, 11), RecurringType.WEEKLY, occurrences=3
        )

        assert [c.conflict for c in candidates] == [False, True, False]
        assert [c.bookable for c in candidates] == [True, False, True]

    def test_closed_day_is_flagged_unavailable(self, db, weekday_template):
        from app.services import availability_service

        availability_service.upsert_override(db, date(2024, 6, 17), None)

        candidates = recurrence_service.expand_series(
            db, utc(2024, 6, 3, 10), utc(2024, 6, 3, 11), RecurringType.WEEKLY, occurrences=3
        )

        assert [c.unavailable for c in candidates] == [False, False, True]

    def test_conflicting_seed_refused(self, db, weekday_template, practice_client):
        db.add(Appointment(
            client_id=practice_client.id,
            scheduled_start=utc(2024, 6, 3, 10),
            scheduled_end=utc(2024, 6, 3, 11),
            confirmed=True,
        ))
        db.commit()

        with pytest.raises(ConflictError):
            recurrence_service.expand_series(
                db, utc(2024, 6, 3, 10), utc(2024, 6, 3, 11), RecurringType.WEEKLY, occurrences=3
            )

    def test_unavailable_seed_refused(self, db, weekday_template):
        with pytest.raises(UnavailableSlotError):
            recurrence_service.expand_series(
                db, utc(2024, 6, 3, 20), utc(2024, 6, 3, 21), RecurringType.WEEKLY, occurrences=3
            )
