"""
meter/services/meter_service.py

Orchestrates one upload through the engine:

    file checks -> decode -> strict validation -> aggregate
                -> indicator regrouping -> main-category rollup

Each call works on a fresh row set; nothing is cached between uploads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from functools import lru_cache

from indicators.regrouper import IndicatorAggregatedResult, IndicatorRegrouper
from meter.config import MeterSettings, get_meter_settings
from meter.domain.activity import AggregatedResult, Row, TaskEntry
from meter.logging_utils import log_event
from meter.services.aggregation_service import AggregationService
from meter.services.monthly_breakdown import MainCategoryAggregatedData, aggregate_by_main_categories
from meter.services.spreadsheet_export_service import SpreadsheetExportService, default_file_name
from meter.services.spreadsheet_reader import SpreadsheetReader
from meter.services.task_listing import list_tasks
from meter.validators.file_validator import validate_upload
from meter.validators.row_sanitizer import RowSanitizer
from meter.validators.row_validator import check_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeterReport:
    """
    Everything produced for one upload and month selection.
    """

    file_name: str
    rows_read: int
    months: tuple[int, ...]
    aggregated: AggregatedResult
    indicator_view: IndicatorAggregatedResult
    main_categories: MainCategoryAggregatedData


@dataclass(frozen=True)
class ExportedFile:
    file_name: str
    content: bytes


class MeterService:
    """
    Entry point used by the HTTP API and the CLI.
    """

    def __init__(
        self,
        *,
        settings: MeterSettings | None = None,
        reader: SpreadsheetReader | None = None,
        aggregator: AggregationService | None = None,
        regrouper: IndicatorRegrouper | None = None,
        exporter: SpreadsheetExportService | None = None,
    ) -> None:
        self._settings = settings or get_meter_settings()
        self._sanitizer = RowSanitizer(self._settings)
        self._reader = reader or SpreadsheetReader()
        self._aggregator = aggregator or AggregationService(settings=self._settings, sanitizer=self._sanitizer)
        self._regrouper = regrouper or IndicatorRegrouper(settings=self._settings)
        self._exporter = exporter or SpreadsheetExportService(self._settings)

    def load_rows(self, *, filename: str, data: bytes) -> list[Row]:
        """
        Check, decode and strictly validate one uploaded workbook.
        """

        validate_upload(filename=filename, size=len(data), settings=self._settings)
        rows = self._reader.decode(data)
        check_rows(rows, sanitizer=self._sanitizer)
        return rows

    def process_upload(
        self,
        *,
        filename: str,
        data: bytes,
        months: Iterable[int],
        indicator_id: str | None = None,
        use_all_groupings: bool = True,
    ) -> MeterReport:
        rows = self.load_rows(filename=filename, data=data)
        return self.process_rows(
            rows,
            file_name=filename,
            months=months,
            indicator_id=indicator_id,
            use_all_groupings=use_all_groupings,
        )

    def process_rows(
        self,
        rows: list[Row],
        *,
        file_name: str,
        months: Iterable[int],
        indicator_id: str | None = None,
        use_all_groupings: bool = True,
    ) -> MeterReport:
        selected = tuple(sorted(set(months)))
        aggregated = self._aggregator.aggregate(rows, selected)
        indicator_view = self._regrouper.aggregate_by_indicator(
            rows,
            selected,
            indicator_id=indicator_id,
            use_all_groupings=use_all_groupings and indicator_id is None,
        )
        main_categories = aggregate_by_main_categories(rows, selected, sanitizer=self._sanitizer)

        log_event(
            logger,
            logging.INFO,
            "meter.report.complete",
            file_name=file_name,
            rows=len(rows),
            months=list(selected),
            all_people=aggregated.all_people,
            warnings=len(aggregated.warnings),
        )
        return MeterReport(
            file_name=file_name,
            rows_read=len(rows),
            months=selected,
            aggregated=aggregated,
            indicator_view=indicator_view,
            main_categories=main_categories,
        )

    def regroup_upload(
        self,
        *,
        filename: str,
        data: bytes,
        months: Iterable[int] | None = None,
        indicator_id: str | None = None,
        use_all_groupings: bool = False,
    ) -> IndicatorAggregatedResult:
        rows = self.load_rows(filename=filename, data=data)
        return self._regrouper.aggregate_by_indicator(
            rows,
            months,
            indicator_id=indicator_id,
            use_all_groupings=use_all_groupings,
        )

    def list_upload_tasks(
        self,
        *,
        filename: str,
        data: bytes,
        months: Iterable[int],
        today: date | None = None,
    ) -> list[TaskEntry]:
        rows = self.load_rows(filename=filename, data=data)
        return list_tasks(rows, set(months), today=today, sanitizer=self._sanitizer)

    def export_upload(
        self,
        *,
        filename: str,
        data: bytes,
        months: Iterable[int],
        export_format: str = "excel",
    ) -> ExportedFile | None:
        """
        Aggregate an upload and render it; None when the export failed.

        Raises ValueError for an unknown ``export_format``.
        """

        output_name = default_file_name(export_format)
        rows = self.load_rows(filename=filename, data=data)
        aggregated = self._aggregator.aggregate(rows, months)
        content = self._exporter.render(aggregated.tree, export_format)
        if content is None:
            return None
        return ExportedFile(file_name=output_name, content=content)


@lru_cache(maxsize=1)
def get_meter_service() -> MeterService:
    """
    Return a cached meter service built from settings.
    """

    return MeterService(settings=get_meter_settings())
