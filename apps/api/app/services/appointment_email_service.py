"""Appointment Email Service - HTML templates for appointment emails.

Provides:
- Templates for scheduled emails (reminders, invoice delivery)
- Templates for immediate notifications (confirmation, cancellation, ...)
- Variable building for an appointment snapshot
"""

import html
import re
from decimal import Decimal

from app.core.config import settings
from app.db.enums import AppointmentFormat, EmailType, NotificationKind
from app.db.models import Appointment, Client, EmailScheduleEntry, Invoice
from app.services import video_service
from app.utils.practice_time import to_local


VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\}\}")


# =============================================================================
# Email Template Definitions
# =============================================================================

_LAYOUT = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: __ACCENT__; padding: 30px; border-radius: 12px 12px 0 0;">
        <h1 style="color: white; margin: 0; font-size: 24px;">__TITLE__</h1>
    </div>
    <div style="background: #f9fafb; padding: 30px; border-radius: 0 0 12px 12px; border: 1px solid #e5e7eb; border-top: none;">
        <p>Hello {{client_name}},</p>
__CONTENT__
        <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
        <p style="color: #9ca3af; font-size: 12px; margin: 0;">
            {{practice_name}}<br>
            This is an automated message. Please do not reply directly to this email.
        </p>
    </div>
</body>
</html>"""

_DETAILS = """        <div style="background: white; border-radius: 8px; padding: 20px; margin: 20px 0; border: 1px solid #e5e7eb;">
            <table style="width: 100%; border-collapse: collapse;">
                <tr><td style="padding: 8px 0; color: #6b7280;">Date:</td><td style="padding: 8px 0;"><strong>{{scheduled_date}}</strong></td></tr>
                <tr><td style="padding: 8px 0; color: #6b7280;">Time:</td><td style="padding: 8px 0;"><strong>{{scheduled_time}} - {{end_time}}</strong></td></tr>
                <tr><td style="padding: 8px 0; color: #6b7280;">Format:</td><td style="padding: 8px 0;"><strong>{{format}}</strong></td></tr>
                <tr><td style="padding: 8px 0; color: #6b7280;">With:</td><td style="padding: 8px 0;"><strong>{{practitioner_name}}</strong></td></tr>
            </table>
        </div>
{{meeting_link}}"""


def _page(title: str, accent: str, content: str) -> str:
    return (
        _LAYOUT.replace("__ACCENT__", accent)
        .replace("__TITLE__", title)
        .replace("__CONTENT__", content)
    )


BLUE = "linear-gradient(135deg, #3b82f6 0%, #1d4ed8 100%)"
GREEN = "linear-gradient(135deg, #10b981 0%, #059669 100%)"
RED = "linear-gradient(135deg, #ef4444 0%, #dc2626 100%)"
PURPLE = "linear-gradient(135deg, #6366f1 0%, #8b5cf6 100%)"

# Keyed by EmailType / NotificationKind value. Scheduled emails use the
# subject stored on their entry; the subject here is for notifications.
TEMPLATES: dict[str, dict[str, str]] = {
    EmailType.REMINDER_24H.value: {
        "subject": "Reminder: your appointment is tomorrow",
        "body": _page(
            "Appointment Reminder",
            BLUE,
            "        <p>This is a friendly reminder about your appointment tomorrow.</p>\n" + _DETAILS,
        ),
    },
    EmailType.REMINDER_1H.value: {
        "subject": "Reminder: your appointment starts in 1 hour",
        "body": _page(
            "Your appointment starts soon",
            BLUE,
            "        <p>Your appointment starts in about one hour.</p>\n" + _DETAILS,
        ),
    },
    EmailType.INVOICE_DELIVERY.value: {
        "subject": "{{practice_name}} - Invoice for your session on {{scheduled_date}}",
        "body": _page(
            "Invoice",
            PURPLE,
            """        <p>Thank you for your session on {{scheduled_date}}. Please find your invoice details below.</p>
        <div style="background: white; border-radius: 8px; padding: 20px; margin: 20px 0; border: 1px solid #e5e7eb;">
            <table style="width: 100%; border-collapse: collapse;">
                <tr><td style="padding: 8px 0; color: #6b7280;">Invoice:</td><td style="padding: 8px 0;"><strong>{{invoice_number}}</strong></td></tr>
                <tr><td style="padding: 8px 0; color: #6b7280;">Amount:</td><td style="padding: 8px 0;"><strong>{{invoice_amount}}</strong></td></tr>
                <tr><td style="padding: 8px 0; color: #6b7280;">Status:</td><td style="padding: 8px 0;"><strong>{{invoice_status}}</strong></td></tr>
            </table>
        </div>
""",
        ),
    },
    NotificationKind.APPOINTMENT_CONFIRMATION.value: {
        "subject": "Appointment confirmed - {{scheduled_date}}",
        "body": _page(
            "Appointment Confirmed",
            GREEN,
            "        <p>Your appointment has been confirmed.</p>\n" + _DETAILS,
        ),
    },
    NotificationKind.SERIES_CONFIRMATION.value: {
        "subject": "Recurring appointments confirmed - starting {{scheduled_date}}",
        "body": _page(
            "Recurring Appointments Confirmed",
            GREEN,
            """        <p>Your recurring appointments have been confirmed. The first session is:</p>
""" + _DETAILS + """        <p>All sessions ({{series_count}}):</p>
        <ul>{{series_dates}}</ul>
""",
        ),
    },
    NotificationKind.APPOINTMENT_CANCELLATION.value: {
        "subject": "Appointment cancelled - {{scheduled_date}}",
        "body": _page(
            "Appointment Cancelled",
            RED,
            """        <p>Your appointment on {{scheduled_date}} at {{scheduled_time}} has been cancelled.</p>
        <p>If you would like to book a new appointment, please contact us.</p>
""",
        ),
    },
    NotificationKind.BOOKING_REQUEST_RECEIVED.value: {
        "subject": "Appointment request received - {{scheduled_date}}",
        "body": _page(
            "Appointment Request Received",
            PURPLE,
            """        <p>Thank you for your request. It is pending approval and you will receive another email once it is confirmed.</p>
""" + _DETAILS,
        ),
    },
}


# =============================================================================
# Variable Building
# =============================================================================

FORMAT_DISPLAY = {
    AppointmentFormat.ONLINE: "Online (video)",
    AppointmentFormat.FACE_TO_FACE: "Face to face",
}


def _format_amount(amount: Decimal | None) -> str:
    if amount is None:
        return ""
    return f"{amount:.2f} EUR"


def build_appointment_variables(
    appointment: Appointment,
    client: Client,
    invoice: Invoice | None = None,
) -> dict[str, str]:
    """Build template variables for an appointment (all values pre-escaped)."""
    start_local = to_local(appointment.scheduled_start)
    end_local = to_local(appointment.scheduled_end)
    appointment_format = AppointmentFormat(appointment.format)

    meeting_link = ""
    if appointment_format == AppointmentFormat.ONLINE and appointment.client_jwt:
        url = video_service.meeting_url(appointment.id, "client", appointment.client_jwt)
        meeting_link = (
            '        <div style="margin: 25px 0; text-align: center;">\n'
            f'            <a href="{html.escape(url)}" style="display: inline-block; padding: 12px 24px; '
            'background: #6366f1; color: white; text-decoration: none; border-radius: 8px; '
            'font-weight: 500;">Join video session</a>\n'
            "        </div>\n"
        )

    variables = {
        "client_name": html.escape(client.full_name),
        "client_email": html.escape(client.email),
        "scheduled_date": start_local.strftime("%A %d/%m/%Y"),
        "scheduled_time": start_local.strftime("%H:%M"),
        "end_time": end_local.strftime("%H:%M"),
        "duration": str(int((appointment.scheduled_end - appointment.scheduled_start).total_seconds() // 60)),
        "format": FORMAT_DISPLAY[appointment_format],
        "meeting_link": meeting_link,
        "practice_name": html.escape(settings.PRACTICE_NAME),
        "practitioner_name": html.escape(settings.PRACTITIONER_NAME),
    }

    if invoice is not None:
        variables["invoice_number"] = str(invoice.id).split("-")[0].upper()
        variables["invoice_amount"] = _format_amount(invoice.amount)
        variables["invoice_status"] = invoice.status.value if invoice.status else ""

    return variables


def build_series_variables(appointments: list[Appointment], client: Client) -> dict[str, str]:
    """Variables for the first session plus the list of all sessions."""
    variables = build_appointment_variables(appointments[0], client)
    variables["series_count"] = str(len(appointments))
    variables["series_dates"] = "".join(
        f"<li>{to_local(appt.scheduled_start):%A %d/%m/%Y %H:%M}</li>" for appt in appointments
    )
    return variables


# =============================================================================
# Rendering
# =============================================================================

def render_template(
    subject: str,
    body: str,
    variables: dict[str, str],
) -> tuple[str, str]:
    """
    Render a template with variable substitution.

    Variables in format {{variable_name}} are replaced with values.
    Missing variables are replaced with empty string.
    """
    def replace_var(match: re.Match) -> str:
        return variables.get(match.group(1), "")

    return VARIABLE_PATTERN.sub(replace_var, subject), VARIABLE_PATTERN.sub(replace_var, body)


def render_scheduled_email(entry: EmailScheduleEntry, variables: dict[str, str]) -> tuple[str, str]:
    """Subject (as stored on the entry) and HTML body of a scheduled email."""
    template = TEMPLATES[entry.email_type.value]
    _, body = render_template("", template["body"], variables)
    return entry.subject, body


def render_notification(kind: NotificationKind, variables: dict[str, str]) -> tuple[str, str]:
    template = TEMPLATES[NotificationKind(kind).value]
    return render_template(template["subject"], template["body"], variables)
