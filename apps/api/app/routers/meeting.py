"""Meeting router - check-in from the video meeting page.

Unauthenticated: the participant token stored on the appointment is the
credential.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db
from app.db.enums import MeetingRole
from app.schemas.appointment import AttendanceRead, MeetingCheckIn
from app.services import appointment_service
from app.services.appointment_service import AttendanceResult
from app.services.scheduling_errors import SchedulingError
from app.routers.scheduling_shared import _raise_http

router = APIRouter()


def _attendance_to_read(result: AttendanceResult) -> AttendanceRead:
    appointment = result.appointment
    return AttendanceRead(
        appointment_id=appointment.id,
        host_attended=appointment.host_attended,
        client_attended=appointment.client_attended,
        status=appointment.status,
        already_recorded=result.already_recorded,
    )


def _check_in(db: Session, data: MeetingCheckIn, role: MeetingRole) -> AttendanceRead:
    try:
        result = appointment_service.record_attendance(db, data.appointment_id, role, data.jwt)
    except SchedulingError as e:
        _raise_http(e)
    return _attendance_to_read(result)


@router.post("/host-attended", response_model=AttendanceRead)
def host_attended(
    data: MeetingCheckIn,
    db: Session = Depends(get_db),
):
    """Record that the practitioner joined the session."""
    return _check_in(db, data, MeetingRole.HOST)


@router.post("/client-attended", response_model=AttendanceRead)
def client_attended(
    data: MeetingCheckIn,
    db: Session = Depends(get_db),
):
    """Record that the client joined the session."""
    return _check_in(db, data, MeetingRole.CLIENT)
