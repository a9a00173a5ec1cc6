"""
meter/validators package marker.
"""

from meter.validators.file_validator import validate_upload
from meter.validators.row_sanitizer import RowSanitizer, is_non_program_site_visit
from meter.validators.row_validator import check_rows, coerce_count, validate_rows

__all__ = [
    "RowSanitizer",
    "check_rows",
    "coerce_count",
    "is_non_program_site_visit",
    "validate_rows",
    "validate_upload",
]
