"""Invoice service - one invoice per session and its payment flag."""

import logging
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from app.db.enums import InvoiceStatus
from app.db.models import Appointment, Client, Invoice
from app.utils.practice_time import utc_now

logger = logging.getLogger(__name__)


def get_invoice_for_appointment(db: Session, appointment_id: UUID) -> Invoice | None:
    return db.query(Invoice).filter(Invoice.appointment_id == appointment_id).first()


def create_invoice_for_appointment(
    db: Session,
    appointment: Appointment,
    client: Client,
    rate: Decimal | None = None,
) -> Invoice:
    """Invoice at the explicit rate, else the client's default rate, else 0. Flushes only."""
    amount = rate if rate is not None else (client.default_rate or Decimal("0"))
    invoice = Invoice(
        appointment_id=appointment.id,
        client_id=client.id,
        amount=amount,
        status=InvoiceStatus.UNPAID,
    )
    db.add(invoice)
    db.flush()
    return invoice


def set_invoice_paid(db: Session, invoice: Invoice, paid: bool, now: datetime | None = None) -> Invoice:
    """Toggle payment. Flushes only."""
    if paid and invoice.status != InvoiceStatus.PAID:
        invoice.status = InvoiceStatus.PAID
        invoice.paid_at = now or utc_now()
        logger.info("Invoice %s marked paid", invoice.id)
    elif not paid and invoice.status != InvoiceStatus.UNPAID:
        invoice.status = InvoiceStatus.UNPAID
        invoice.paid_at = None
        logger.info("Invoice %s marked unpaid", invoice.id)
    db.flush()
    return invoice


def list_invoices(
    db: Session,
    client_id: UUID | None = None,
    status: InvoiceStatus | None = None,
) -> list[Invoice]:
    """Invoices with their client and session, newest first."""
    query = db.query(Invoice).options(joinedload(Invoice.client), joinedload(Invoice.appointment))
    if client_id is not None:
        query = query.filter(Invoice.client_id == client_id)
    if status is not None:
        query = query.filter(Invoice.status == status)
    return query.order_by(Invoice.issued_at.desc()).all()


def get_invoice(db: Session, invoice_id: UUID) -> Invoice | None:
    return db.query(Invoice).options(
        joinedload(Invoice.client), joinedload(Invoice.appointment)
    ).filter(Invoice.id == invoice_id).first()


def update_invoice_payment(db: Session, invoice: Invoice, paid: bool) -> Invoice:
    """Payment toggle for an invoice, whether or not its session still exists."""
    set_invoice_paid(db, invoice, paid)
    db.commit()
    db.refresh(invoice)
    return invoice
