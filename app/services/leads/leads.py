"""
Lead store - append-only record of completed intakes.

Each append writes one row to the leads table (the lead of record) and then mirrors it
to Google Sheets when that is enabled. Concurrent appends need no coordination: every
call uses its own database session and only inserts.
"""

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from app.db import session as db_session
from app.db.models import Lead
from app.services.capabilities import LeadRecord
from app.services.integrations.sheets import log_lead_to_sheets

logger = logging.getLogger(__name__)


def insert_lead(record: LeadRecord) -> Lead:
    """
    Insert a lead row.

    Raises:
        SQLAlchemyError: If the insert fails (rolled back before re-raising)
    """
    db = db_session.SessionLocal()
    try:
        lead = Lead(
            user_id=record.user_id,
            client_name=record.client_name,
            client_tax_id=record.client_tax_id,
            client_legal_name=record.client_legal_name,
            email=record.email,
            created_at=record.created_at,
        )
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead
    except SQLAlchemyError:
        db.rollback()
        raise
    finally:
        db.close()


class SqlLeadStore:
    def __init__(self, mirror_to_sheets: bool = True):
        self.mirror_to_sheets = mirror_to_sheets

    async def append(self, record: LeadRecord) -> None:
        lead = await asyncio.to_thread(insert_lead, record)
        logger.info(f"Lead {lead.id} stored for user {record.user_id} (RUC {record.client_tax_id})")

        if self.mirror_to_sheets:
            await asyncio.to_thread(log_lead_to_sheets, record)
