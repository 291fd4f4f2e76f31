"""API routers."""

from app.routers.appointments import router as appointments_router
from app.routers.approvals import router as approvals_router
from app.routers.availability import router as availability_router
from app.routers.booking import router as booking_router
from app.routers.clients import router as clients_router
from app.routers.internal import router as internal_router
from app.routers.invoices import router as invoices_router
from app.routers.meeting import router as meeting_router
from app.routers.notes import router as notes_router

__all__ = [
    "appointments_router",
    "approvals_router",
    "availability_router",
    "booking_router",
    "clients_router",
    "internal_router",
    "invoices_router",
    "meeting_router",
    "notes_router",
]
