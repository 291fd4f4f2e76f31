"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from external cron (Render/Railway/GH Actions).
"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.deps import get_db, verify_internal_secret
from app.services import email_dispatch_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/internal/scheduled",
    tags=["internal"],
    dependencies=[Depends(verify_internal_secret)],
)


class DispatchResponse(BaseModel):
    processed: int
    sent: int
    failed: int


@router.post("/process-emails", response_model=DispatchResponse)
async def process_emails(db: Session = Depends(get_db)):
    """
    Send every pending scheduled email that is due.

    Intended to run every few minutes; due-time lookahead is
    EMAIL_DISPATCH_BUFFER_MINUTES.
    """
    summary = await email_dispatch_service.process_due_emails(db)
    return DispatchResponse(
        processed=summary.processed,
        sent=summary.sent,
        failed=summary.failed,
    )
