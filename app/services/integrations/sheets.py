"""
Google Sheets lead mirror - appends one row per completed intake.

The database is the lead of record; the sheet is a convenience view for the sales team.
Disabled unless GOOGLE_SHEETS_ENABLED and a spreadsheet id are set. Failures are
logged and reported as False, never raised.
"""

import json
import logging
import os

from app.core.config import settings
from app.services.capabilities import LeadRecord

logger = logging.getLogger(__name__)

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Column order in the sheet (header row is maintained by hand)
LEAD_COLUMNS = (
    "created_at",
    "whatsapp_number",
    "client_name",
    "client_tax_id",
    "client_legal_name",
    "email",
)


def _get_sheets_service():
    """
    Build the Google Sheets API client.

    Returns:
        Sheets service object, or None if not configured
    """
    if not settings.google_sheets_enabled or not settings.google_sheets_spreadsheet_id:
        return None

    from google.oauth2 import service_account
    from googleapiclient.discovery import build

    credentials_json = settings.google_sheets_credentials_json
    if not credentials_json:
        logger.warning("Google Sheets enabled but credentials_json not set")
        return None

    # Either a path to the service account file or the JSON itself
    if os.path.exists(credentials_json):
        credentials = service_account.Credentials.from_service_account_file(
            credentials_json, scopes=SHEETS_SCOPES
        )
    else:
        try:
            creds_dict = json.loads(credentials_json)
        except json.JSONDecodeError:
            logger.error("Google Sheets credentials_json is neither a valid file path nor JSON string")
            return None
        credentials = service_account.Credentials.from_service_account_info(
            creds_dict, scopes=SHEETS_SCOPES
        )

    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


def lead_row(record: LeadRecord) -> list[str]:
    values = {
        "created_at": record.created_at.strftime("%Y-%m-%d %H:%M"),
        "whatsapp_number": record.user_id,
        "client_name": record.client_name or "",
        "client_tax_id": record.client_tax_id or "",
        "client_legal_name": record.client_legal_name or "",
        "email": record.email or "",
    }
    return [values[column] for column in LEAD_COLUMNS]


def log_lead_to_sheets(record: LeadRecord) -> bool:
    """
    Append a lead row to the configured sheet.

    Returns:
        True if a row was appended, False if disabled or failed
    """
    try:
        service = _get_sheets_service()
        if service is None:
            logger.debug(f"Sheets mirror disabled - skipping lead for {record.user_id}")
            return False

        service.spreadsheets().values().append(
            spreadsheetId=settings.google_sheets_spreadsheet_id,
            range=settings.google_sheets_range,
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [lead_row(record)]},
        ).execute()
        logger.info(f"Appended lead for {record.user_id} to Google Sheets")
        return True
    except Exception as e:
        # googleapiclient raises HttpError, google-auth its own errors; none should stop intake
        logger.error(f"Failed to append lead for {record.user_id} to Google Sheets: {e}")
        return False
