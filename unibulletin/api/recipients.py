"""
Recipient-list upload: turns a CSV/XLSX sheet into student/staff entries.
"""

from fastapi import APIRouter, File, UploadFile

from unibulletin.config import settings
from unibulletin.schemas.announcement import RecipientListResponse
from unibulletin.services.recipients import parse_recipient_file

router = APIRouter(prefix="/recipients", tags=["Recipients"])


@router.post("/parse", response_model=RecipientListResponse)
async def parse_recipients(file: UploadFile = File(...)):
    """
    Parse an uploaded recipient list.

    Columns are matched case-insensitively (name/fullname, regId/staffId,
    email/e-mail, ...). Nothing is stored; the client attaches the result
    to an announcement's students or staff field.
    """
    content = await file.read()
    return parse_recipient_file(file.filename or "", content, settings.max_recipient_list_bytes)
