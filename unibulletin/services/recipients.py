"""
Recipient-list import from CSV or XLSX spreadsheets.

Header cells are matched case-insensitively against an ordered alias list
per logical field; the first alias present in the header wins.
"""

import csv
import io
import logging
import zipfile
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from unibulletin.errors import ValidationError
from unibulletin.schemas.announcement import Recipient, RecipientListResponse

logger = logging.getLogger(__name__)

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": (
        "name", "fullname", "full name", "full_name",
        "student name", "studentname", "staff name", "staffname",
    ),
    "id": (
        "regid", "reg id", "reg_id", "registration id", "registration number",
        "registration no", "staffid", "staff id", "staff_id",
        "roll no", "rollno", "id",
    ),
    "email": (
        "email", "e-mail", "email id", "emailid", "email address", "mail",
    ),
}


def normalize_header(value: Any) -> str:
    return str(value if value is not None else "").strip().lower()


def resolve_columns(headers: Sequence[Any]) -> Dict[str, int]:
    """Map each logical field to the index of its first matching header."""
    normalized = [normalize_header(h) for h in headers]
    columns: Dict[str, int] = {}
    for field, aliases in FIELD_ALIASES.items():
        for alias in aliases:
            if alias in normalized:
                columns[field] = normalized.index(alias)
                break
    return columns


def _cell_text(row: Sequence[Any], index: int) -> Optional[str]:
    if index >= len(row) or row[index] is None:
        return None
    value = row[index]
    # Spreadsheet ids are often stored as numbers (21001.0)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def rows_to_recipients(rows: Iterable[Sequence[Any]]) -> RecipientListResponse:
    """First row is the header; returns recipients and the count of unusable rows."""
    rows = iter(rows)
    headers = next(rows, None)
    if headers is None:
        raise ValidationError("Recipient list is empty")

    columns = resolve_columns(headers)
    if not columns:
        raise ValidationError("No recognizable columns; expected name, regId or email")

    recipients: List[Recipient] = []
    skipped = 0
    for row in rows:
        if not any(_cell_text(row, i) for i in range(len(row))):
            continue
        values = {field: _cell_text(row, index) for field, index in columns.items()}
        if not any(values.values()):
            skipped += 1
            continue
        recipients.append(Recipient(**values))

    return RecipientListResponse(recipients=recipients, skipped=skipped)


def _read_csv(content: bytes) -> List[List[str]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("CSV file must be UTF-8 encoded")
    return list(csv.reader(io.StringIO(text)))


def _read_xlsx(content: bytes) -> List[Tuple[Any, ...]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
        logger.warning(f"Unreadable XLSX upload: {e}")
        raise ValidationError("Could not read the XLSX file")
    try:
        return list(workbook.active.iter_rows(values_only=True))
    finally:
        workbook.close()


def parse_recipient_file(file_name: str, content: bytes, max_bytes: int) -> RecipientListResponse:
    """Parse an uploaded .csv or .xlsx recipient list."""
    if len(content) > max_bytes:
        raise ValidationError(f"Recipient list exceeds the {max_bytes / (1024 * 1024):g} MB limit")

    name = (file_name or "").lower()
    if name.endswith(".csv"):
        rows = _read_csv(content)
    elif name.endswith(".xlsx"):
        rows = _read_xlsx(content)
    else:
        raise ValidationError("Recipient list must be a .csv or .xlsx file")

    result = rows_to_recipients(rows)
    logger.info(
        f"Parsed recipient list {file_name!r}: "
        f"{len(result.recipients)} recipients, {result.skipped} skipped"
    )
    return result
