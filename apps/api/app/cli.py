"""CLI tools for practice administration."""

import asyncio
import logging
from datetime import datetime

import click

from app.core.config import settings
from app.core.security import create_session_token
from app.db.session import SessionLocal
from app.services import availability_service, email_dispatch_service
from app.services.scheduling_errors import SchedulingError


@click.group()
def cli():
    """Practice CLI tools."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


@cli.command()
def process_emails():
    """
    Send every pending scheduled email that is due (one batch).

    Meant for cron when the internal HTTP endpoint is not used.

    Example:
        python -m app.cli process-emails
    """
    db = SessionLocal()
    try:
        summary = asyncio.run(email_dispatch_service.process_due_emails(db))
        click.echo(
            f"✓ Processed {summary.processed} emails: "
            f"{summary.sent} sent, {summary.failed} failed"
        )
    finally:
        db.close()


@cli.command()
@click.option("--email", required=True, help="Practitioner email (must be in ADMIN_EMAILS)")
@click.option("--hours", default=None, type=int, help="Token lifetime in hours (default: JWT_EXPIRES_HOURS)")
def issue_token(email: str, hours: int | None):
    """
    Mint a session token for the practice_session cookie.

    Example:
        python -m app.cli issue-token --email doctor@example.com
    """
    email = email.strip().lower()
    if email not in settings.admin_emails_list:
        click.echo(f"❌ {email} is not listed in ADMIN_EMAILS")
        raise SystemExit(1)

    click.echo(create_session_token(email, expires_hours=hours))


@cli.command()
@click.argument("start", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.argument("end", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option("--reason", default=None, help="Shown on the overrides (e.g. Vacation)")
def close_dates(start: datetime, end: datetime, reason: str | None):
    """
    Close every date from START to END (inclusive, YYYY-MM-DD).

    Existing appointments on those dates are left untouched.

    Example:
        python -m app.cli close-dates 2024-08-01 2024-08-15 --reason Vacation
    """
    db = SessionLocal()
    try:
        count = availability_service.close_dates(db, start.date(), end.date(), reason=reason)
        click.echo(f"✓ Closed {count} dates")
    except SchedulingError as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()


if __name__ == "__main__":
    cli()
