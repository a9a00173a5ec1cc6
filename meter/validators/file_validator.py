"""
meter/validators/file_validator.py

Upload checks that run before a workbook is decoded.
"""

from __future__ import annotations

from pathlib import PurePath

from meter.config import MeterSettings, get_meter_settings
from meter.errors import FileSizeError, FileTypeError

_BYTES_PER_MB = 1024 * 1024
LEGACY_EXCEL_EXTENSION = ".xls"


def _format_megabytes(size: int) -> str:
    return f"{size / _BYTES_PER_MB:.1f} MB"


def validate_upload(
    *,
    filename: str,
    size: int,
    settings: MeterSettings | None = None,
) -> None:
    """
    Raise FileTypeError / FileSizeError when an upload is unacceptable.
    """

    settings = settings or get_meter_settings()
    extension = PurePath((filename or "").strip()).suffix.lower()
    if extension == LEGACY_EXCEL_EXTENSION and extension not in settings.allowed_extensions:
        raise FileTypeError(
            "Legacy .xls workbooks cannot be read",
            value=filename,
            suggestion="Open the file in a spreadsheet editor and save it as .xlsx.",
        )
    if extension not in settings.allowed_extensions:
        raise FileTypeError(
            "Unsupported file type",
            value=filename,
            details=f"Allowed extensions: {', '.join(settings.allowed_extensions)}",
            suggestion="Upload the activity report saved as an Excel workbook.",
        )
    if size > settings.max_upload_bytes:
        raise FileSizeError(
            "File is too large",
            value=_format_megabytes(size),
            details=f"Maximum size is {_format_megabytes(settings.max_upload_bytes)}",
        )
