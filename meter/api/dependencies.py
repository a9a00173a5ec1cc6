"""
meter/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, Query, UploadFile, status

from meter.config import get_meter_settings

SPREADSHEET_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}


def get_spreadsheet_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a spreadsheet by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_spreadsheet_filename = filename.endswith(get_meter_settings().allowed_extensions)
    is_spreadsheet_content_type = content_type in SPREADSHEET_CONTENT_TYPES

    if not is_spreadsheet_filename and not is_spreadsheet_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only Excel workbooks (.xlsx) are allowed.",
        )

    return file


def get_month_selection(
    months: list[int] = Query(default=[], description="Selected calendar months (1-12); repeat the parameter"),
) -> list[int]:
    """
    Reject month numbers outside 1-12.
    """

    invalid = [month for month in months if not 1 <= month <= 12]
    if invalid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid month number(s): {invalid}. Allowed: 1-12.",
        )
    return months
