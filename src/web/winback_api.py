"""
Winback API

Accepts a carrier termination report (.xlsx) and returns the parsed
records with their household keys and winback contact dates.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from config.settings import Settings
from web.dependencies import get_app_settings
from web.errors import APIError, ErrorCode
from winback.parser import calculate_winback_date, household_key, parse_winback_workbook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/winback", tags=["Winback"])

XLSX_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/octet-stream",
}


@router.post("/parse")
async def parse_report(
    file: UploadFile = File(...),
    contact_days_before: Optional[int] = Form(default=None, ge=0, le=365),
    settings: Settings = Depends(get_app_settings),
):
    filename = file.filename or ""
    if not filename.lower().endswith(".xlsx") and file.content_type not in XLSX_CONTENT_TYPES:
        raise APIError(ErrorCode.VALIDATION_FILE_TYPE_NOT_ALLOWED, "Upload an .xlsx termination report")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise APIError(
            ErrorCode.VALIDATION_FILE_TOO_LARGE,
            f"File exceeds {settings.max_upload_bytes} bytes",
        )

    days = settings.winback_contact_days_before if contact_days_before is None else contact_days_before
    result = parse_winback_workbook(content)
    logger.info(f"Winback upload {filename!r}: {len(result.records)} records, {result.skipped} skipped")

    records = []
    for record in result.records:
        data = record.to_dict()
        data["household_key"] = household_key(record)
        data["winback_date"] = calculate_winback_date(
            record.termination_effective_date, record.policy_term_months, days
        )
        records.append(data)

    return {
        "filename": filename,
        "contact_days_before": days,
        "records": records,
        "errors": result.errors,
        "skipped": result.skipped,
        "households": len({r["household_key"] for r in records}),
    }
