"""Immediate notifications for appointment lifecycle events.

Lifecycle operations return NotificationIntent values instead of sending
mail inline; routers deliver them after the transaction has committed.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from app.db.enums import NotificationKind
from app.db.models import Appointment, Client
from app.services import appointment_email_service, resend_email_service
from app.services.resend_email_service import SendResult

logger = logging.getLogger(__name__)

SendFn = Callable[..., Awaitable[SendResult]]


@dataclass(frozen=True)
class NotificationIntent:
    """A single immediate email to send, with the appointment snapshot it describes."""

    recipient_email: str
    recipient_name: str
    kind: NotificationKind
    snapshot: dict[str, str]
    appointment_id: uuid.UUID | None = None
    key: str = field(default_factory=lambda: uuid.uuid4().hex)


def appointment_intent(
    kind: NotificationKind,
    appointment: Appointment,
    client: Client,
) -> NotificationIntent:
    return NotificationIntent(
        recipient_email=client.email,
        recipient_name=client.full_name,
        kind=kind,
        snapshot=appointment_email_service.build_appointment_variables(appointment, client),
        appointment_id=appointment.id,
    )


def series_intent(appointments: list[Appointment], client: Client) -> NotificationIntent:
    return NotificationIntent(
        recipient_email=client.email,
        recipient_name=client.full_name,
        kind=NotificationKind.SERIES_CONFIRMATION,
        snapshot=appointment_email_service.build_series_variables(appointments, client),
        appointment_id=appointments[0].id,
    )


async def deliver_notifications(
    intents: list[NotificationIntent],
    send_fn: SendFn | None = None,
) -> int:
    """
    Send each intent; failures are logged and do not raise.

    Returns the number of emails accepted by the transport.
    """
    send = send_fn or resend_email_service.send_email
    delivered = 0
    for intent in intents:
        subject, body = appointment_email_service.render_notification(intent.kind, intent.snapshot)
        try:
            result = await send(
                to_email=intent.recipient_email,
                to_name=intent.recipient_name,
                subject=subject,
                html=body,
                idempotency_key=f"notification/{intent.kind.value}/{intent.key}",
            )
        except Exception:
            logger.exception(
                "Notification %s failed for appointment %s", intent.kind.value, intent.appointment_id
            )
            continue

        if result.success:
            delivered += 1
        else:
            logger.warning(
                "Notification %s not delivered for appointment %s: %s",
                intent.kind.value, intent.appointment_id, result.error,
            )
    return delivered
