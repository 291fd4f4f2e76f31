"""Appointment and scheduling enums."""

from enum import Enum


class AppointmentFormat(str, Enum):
    """Where the session takes place."""

    ONLINE = "online"  # Video session, gets host/client tokens
    FACE_TO_FACE = "face_to_face"


class AppointmentStatus(str, Enum):
    """
    Appointment attendance status.

    Flow: not_yet_attended → attended
                           ↘ absent
                           ↘ cancelled (final)
    attended ↔ absent is allowed as a correction.
    """

    NOT_YET_ATTENDED = "not_yet_attended"
    ATTENDED = "attended"
    ABSENT = "absent"
    CANCELLED = "cancelled"  # Excluded from conflict checks


class RecurringType(str, Enum):
    """Step between instances of a recurring series."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class MeetingRole(str, Enum):
    """Participant of a video session."""

    HOST = "host"
    CLIENT = "client"


class EditMode(str, Enum):
    """Scope of an update or delete on a recurring appointment."""

    SINGLE = "single"
    SERIES = "series"


# Allowed status moves (same-status updates are no-ops)
ALLOWED_STATUS_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.NOT_YET_ATTENDED: frozenset({
        AppointmentStatus.ATTENDED,
        AppointmentStatus.ABSENT,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.ATTENDED: frozenset({
        AppointmentStatus.ABSENT,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.ABSENT: frozenset({
        AppointmentStatus.ATTENDED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.CANCELLED: frozenset(),
}

