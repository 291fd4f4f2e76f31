"""Invoices router - session invoices and payment."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, require_csrf_header
from app.db.enums import InvoiceStatus
from app.db.models import Invoice
from app.schemas.invoice import InvoicePaymentUpdate, InvoiceRead
from app.services import invoice_service

router = APIRouter(dependencies=[Depends(get_current_admin)])


def _invoice_to_read(invoice: Invoice) -> InvoiceRead:
    appointment = invoice.appointment
    return InvoiceRead(
        id=invoice.id,
        client_id=invoice.client_id,
        client_name=invoice.client.full_name,
        client_email=invoice.client.email,
        appointment_id=invoice.appointment_id,
        appointment_start=appointment.scheduled_start if appointment else None,
        appointment_end=appointment.scheduled_end if appointment else None,
        amount=invoice.amount,
        status=invoice.status,
        issued_at=invoice.issued_at,
        paid_at=invoice.paid_at,
    )


@router.get("", response_model=list[InvoiceRead])
def list_invoices(
    client_id: UUID | None = Query(None),
    status: InvoiceStatus | None = Query(None),
    db: Session = Depends(get_db),
):
    """Invoices, newest first, optionally for one client or payment status."""
    invoices = invoice_service.list_invoices(db, client_id=client_id, status=status)
    return [_invoice_to_read(i) for i in invoices]


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
):
    invoice = invoice_service.get_invoice(db, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return _invoice_to_read(invoice)


@router.patch(
    "/{invoice_id}",
    response_model=InvoiceRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_invoice_payment(
    invoice_id: UUID,
    data: InvoicePaymentUpdate,
    db: Session = Depends(get_db),
):
    """Mark an invoice paid or unpaid."""
    invoice = invoice_service.get_invoice(db, invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    invoice = invoice_service.update_invoice_payment(db, invoice, data.paid)
    return _invoice_to_read(invoice)
