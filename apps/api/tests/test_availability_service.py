"""
Tests for Availability Service.

Coverage:
- Weekly template CRUD and validation
- Date overrides (open blocks and closed days)
- Resolution precedence (closed > override > template)
- Containment checks and free slot listing
"""

from datetime import date, datetime, time, timezone

import pytest

from app.db.enums import BusinessWeekday
from app.db.models import Appointment, DateAvailabilityOverride
from app.services import availability_service
from app.services.availability_service import BlockInput, TimeSlot
from app.services.scheduling_errors import SchedulingValidationError

MONDAY = date(2024, 6, 3)
SATURDAY = date(2024, 6, 8)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Weekly Template
# =============================================================================

class TestWeeklyTemplate:

    def test_replace_template_orders_by_weekday_and_start(self, db):
        availability_service.replace_weekly_template(db, [
            BlockInput(BusinessWeekday.TUESDAY, time(14, 0), time(18, 0)),
            BlockInput(BusinessWeekday.MONDAY, time(14, 0), time(17, 0)),
            BlockInput(BusinessWeekday.MONDAY, time(9, 0), time(12, 0)),
        ])

        blocks = availability_service.get_weekly_template(db)
        assert [(b.weekday, b.start_time) for b in blocks] == [
            (0, time(9, 0)),
            (0, time(14, 0)),
            (1, time(14, 0)),
        ]

    def test_replace_template_drops_previous_blocks(self, db, weekday_template):
        availability_service.replace_weekly_template(db, [
            BlockInput(BusinessWeekday.SATURDAY, time(10, 0), time(12, 0)),
        ])

        blocks = availability_service.get_weekly_template(db)
        assert len(blocks) == 1
        assert blocks[0].weekday == BusinessWeekday.SATURDAY

    def test_inverted_block_rejected(self, db):
        with pytest.raises(SchedulingValidationError):
            availability_service.upsert_weekly_block(
                db, BusinessWeekday.MONDAY, time(12, 0), time(9, 0)
            )

    def test_update_missing_block_returns_none(self, db):
        from uuid import uuid4

        result = availability_service.upsert_weekly_block(
            db, BusinessWeekday.MONDAY, time(9, 0), time(12, 0), block_id=uuid4()
        )
        assert result is None

    def test_inactive_blocks_are_ignored_by_resolution(self, db):
        availability_service.upsert_weekly_block(
            db, BusinessWeekday.MONDAY, time(9, 0), time(12, 0), is_active=False
        )

        assert availability_service.resolve_availability(db, MONDAY) == []
        assert len(availability_service.get_weekly_template(db, include_inactive=True)) == 1

    def test_delete_block(self, db, weekday_template):
        assert availability_service.delete_weekly_block(db, weekday_template[0].id) is True
        assert availability_service.resolve_availability(db, MONDAY) == []


# =============================================================================
# Resolution
# =============================================================================

class TestResolveAvailability:

    def test_template_fallback_uses_business_weekday(self, db, weekday_template):
        assert availability_service.resolve_availability(db, MONDAY) == [
            TimeSlot(time(9, 0), time(17, 0))
        ]
        assert availability_service.resolve_availability(db, SATURDAY) == []

    def test_split_shifts_returned_in_order(self, db):
        availability_service.replace_weekly_template(db, [
            BlockInput(BusinessWeekday.MONDAY, time(14, 0), time(18, 0)),
            BlockInput(BusinessWeekday.MONDAY, time(8, 0), time(12, 0)),
        ])

        slots = availability_service.resolve_availability(db, MONDAY)
        assert slots == [TimeSlot(time(8, 0), time(12, 0)), TimeSlot(time(14, 0), time(18, 0))]

    def test_closed_override_wins_over_template(self, db, weekday_template):
        availability_service.upsert_override(db, MONDAY, None, reason="Holiday")

        day = availability_service.resolve_day(db, MONDAY)
        assert day.slots == []
        assert day.source == "closed"

    def test_closed_marker_wins_over_other_override_rows(self, db, weekday_template):
        db.add_all([
            DateAvailabilityOverride(override_date=MONDAY, start_time=time(9, 0), end_time=time(10, 0)),
            DateAvailabilityOverride(override_date=MONDAY),
        ])
        db.commit()

        assert availability_service.resolve_availability(db, MONDAY) == []

    def test_open_override_replaces_template(self, db, weekday_template):
        availability_service.upsert_override(db, MONDAY, [
            TimeSlot(time(15, 0), time(19, 0)),
            TimeSlot(time(8, 0), time(10, 0)),
        ])

        day = availability_service.resolve_day(db, MONDAY)
        assert day.source == "override"
        assert day.slots == [TimeSlot(time(8, 0), time(10, 0)), TimeSlot(time(15, 0), time(19, 0))]

    def test_override_opens_a_weekend_day(self, db, weekday_template):
        availability_service.upsert_override(db, SATURDAY, [TimeSlot(time(10, 0), time(12, 0))])

        assert availability_service.resolve_availability(db, SATURDAY) == [
            TimeSlot(time(10, 0), time(12, 0))
        ]

    def test_upsert_override_replaces_previous_rows(self, db, weekday_template):
        availability_service.upsert_override(db, MONDAY, None)
        availability_service.upsert_override(db, MONDAY, [TimeSlot(time(9, 0), time(11, 0))])

        assert len(availability_service.get_overrides_for_date(db, MONDAY)) == 1
        assert availability_service.resolve_availability(db, MONDAY) == [
            TimeSlot(time(9, 0), time(11, 0))
        ]

    def test_delete_overrides_restores_template(self, db, weekday_template):
        availability_service.upsert_override(db, MONDAY, None)
        assert availability_service.delete_overrides(db, MONDAY) == 1

        assert availability_service.resolve_day(db, MONDAY).source == "template"

    def test_datetime_is_normalized_to_its_day(self, db, weekday_template):
        assert availability_service.resolve_availability(db, utc(2024, 6, 3, 22, 45)) == [
            TimeSlot(time(9, 0), time(17, 0))
        ]

    def test_close_dates_marks_every_day(self, db, weekday_template):
        count = availability_service.close_dates(db, date(2024, 8, 1), date(2024, 8, 15), "Vacation")

        assert count == 15
        days = availability_service.resolve_availability_range(db, date(2024, 7, 31), date(2024, 8, 16))
        closed = [d.day for d in days if d.source == "closed"]
        assert closed[0] == date(2024, 8, 1)
        assert closed[-1] == date(2024, 8, 15)
        assert len(closed) == 15
        assert days[0].source == "template"  # Wednesday July 31

    def test_close_dates_rejects_inverted_range(self, db):
        with pytest.raises(SchedulingValidationError):
            availability_service.close_dates(db, date(2024, 8, 2), date(2024, 8, 1))


# =============================================================================
# Containment
# =============================================================================

class TestCheckWithinAvailability:

    def test_inside_block(self, db, weekday_template):
        assert availability_service.check_within_availability(
            db, utc(2024, 6, 3, 10), utc(2024, 6, 3, 11)
        )

    def test_block_edges_are_inclusive(self, db, weekday_template):
        assert availability_service.check_within_availability(
            db, utc(2024, 6, 3, 9), utc(2024, 6, 3, 17)
        )

    def test_overhanging_end_rejected(self, db, weekday_template):
        assert not availability_service.check_within_availability(
            db, utc(2024, 6, 3, 16, 30), utc(2024, 6, 3, 17, 30)
        )

    def test_evening_rejected(self, db, weekday_template):
        assert not availability_service.check_within_availability(
            db, utc(2024, 6, 3, 20), utc(2024, 6, 3, 21)
        )

    def test_interval_spanning_two_split_blocks_rejected(self, db):
        availability_service.replace_weekly_template(db, [
            BlockInput(BusinessWeekday.MONDAY, time(9, 0), time(12, 0)),
            BlockInput(BusinessWeekday.MONDAY, time(13, 0), time(17, 0)),
        ])

        assert not availability_service.check_within_availability(
            db, utc(2024, 6, 3, 11, 30), utc(2024, 6, 3, 13, 30)
        )

    def test_crossing_midnight_rejected(self, db):
        availability_service.upsert_override(db, MONDAY, [TimeSlot(time(0, 0), time(23, 59))])

        assert not availability_service.check_within_availability(
            db, utc(2024, 6, 3, 23), utc(2024, 6, 4, 1)
        )


# =============================================================================
# Free Slots
# =============================================================================

class TestListFreeSlots:

    def test_slots_skip_booked_times(self, db, weekday_template, practice_client):
        db.add(Appointment(
            client_id=practice_client.id,
            scheduled_start=utc(2024, 6, 3, 10),
            scheduled_end=utc(2024, 6, 3, 11),
            confirmed=True,
        ))
        db.commit()

        slots = availability_service.list_free_slots(db, MONDAY, 60, now=utc(2024, 6, 1))

        starts = [s.start.hour for s in slots]
        assert starts == [9, 11, 12, 13, 14, 15, 16]

    def test_slots_in_the_past_are_hidden(self, db, weekday_template):
        slots = availability_service.list_free_slots(db, MONDAY, 60, now=utc(2024, 6, 3, 13, 30))

        assert [s.start.hour for s in slots] == [14, 15, 16]

    def test_closed_day_has_no_slots(self, db, weekday_template):
        availability_service.upsert_override(db, MONDAY, None)

        assert availability_service.list_free_slots(db, MONDAY, 60, now=utc(2024, 6, 1)) == []

    def test_invalid_duration(self, db):
        with pytest.raises(SchedulingValidationError):
            availability_service.list_free_slots(db, MONDAY, 0)
