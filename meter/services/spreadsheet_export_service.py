"""
meter/services/spreadsheet_export_service.py

Spreadsheet export of the aggregate tree.

Three formats are supported:

    excel       flat report: one sheet, 4 fixed-width columns
                (index, name, people, actions)
    template    fills the "Załącznik Nr 1" template
    cumulative  fills the cumulative "Załącznik Nr 2" template

Template layout: data starts on row 7. Programmed types fill columns A-H,
non-programmed types columns I-O; site-visit action counts always go to
column D. Program numbering restarts for each section.

Every export returns a success flag and never raises, except for an
unknown format name which is a programming error.
"""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import IO, Callable, Union

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Font
from openpyxl.worksheet.worksheet import Worksheet

from meter.config import MeterSettings, get_meter_settings
from meter.domain.activity import AggregateTree, ProgramAction
from meter.logging_utils import log_event
from meter.services.aggregation_service import split_by_program_kind

logger = logging.getLogger(__name__)

Destination = Union[str, Path, IO[bytes]]

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

FLAT_COLUMN_WIDTHS: tuple[int, ...] = (15, 40, 10, 10)
TEMPLATE_FIRST_ROW = 7

_PROGRAM_FONT = Font(name="Calibri", size=11, bold=True, color="FFFF0000")
_ACTION_FONT = Font(name="Calibri", size=11, bold=False, color="FF000000")
_TYPE_FONT = Font(name="Calibri", size=11, bold=True)

_PROGRAM_INDEX = re.compile(r"^\d+\.$")
_ACTION_INDEX = re.compile(r"^\d+\.\d+$")


@dataclass(frozen=True)
class TemplateColumns:
    number: str
    name: str
    copy: str
    action: str
    site_visit: str
    people: str


PROGRAMMED_COLUMNS = TemplateColumns(number="A", name="B", copy="G", action="C", site_visit="D", people="H")
NON_PROGRAMMED_COLUMNS = TemplateColumns(number="I", name="J", copy="N", action="K", site_visit="D", people="O")


@dataclass(frozen=True)
class ExportStrategy:
    """
    Metadata for one export format.
    """

    format: str
    label: str
    description: str
    default_file_name: str


EXPORT_STRATEGIES = MappingProxyType(
    {
        "excel": ExportStrategy(
            format="excel",
            label="Excel (Miernik Budżetowy)",
            description="Flat report in the traditional spreadsheet layout",
            default_file_name="miernik-budzetowy",
        ),
        "template": ExportStrategy(
            format="template",
            label="Szablon Raportu",
            description="Report template (Załącznik Nr 1)",
            default_file_name="zalacznik-nr-1",
        ),
        "cumulative": ExportStrategy(
            format="cumulative",
            label="Raport Skumulowany",
            description="Cumulative report template (Załącznik Nr 2)",
            default_file_name="zalacznik-nr-2-narastajacy",
        ),
    }
)


def get_export_strategy(export_format: str) -> ExportStrategy:
    strategy = EXPORT_STRATEGIES.get(export_format)
    if strategy is None:
        raise ValueError(f"Unknown export format {export_format!r}. Valid: {sorted(EXPORT_STRATEGIES)}")
    return strategy


def default_file_name(export_format: str, *, today: date | None = None) -> str:
    """
    Return ``"<base> DD-MM-YYYY.xlsx"`` for a format.
    """

    strategy = get_export_strategy(export_format)
    stamp = (today or date.today()).strftime("%d-%m-%Y")
    return f"{strategy.default_file_name} {stamp}.xlsx"


class SpreadsheetExportService:
    """
    Writes aggregate trees into workbooks.
    """

    def __init__(self, settings: MeterSettings | None = None) -> None:
        self._settings = settings or get_meter_settings()

    # -----------------------------------------------------------------------
    # Flat report
    # -----------------------------------------------------------------------

    def build_flat_workbook(self, tree: AggregateTree) -> Workbook:
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self._settings.report_sheet_name
        for index, width in enumerate(FLAT_COLUMN_WIDTHS, start=1):
            sheet.column_dimensions[chr(ord("A") + index - 1)].width = width

        for program_type, programs in tree.items():
            sheet.append([program_type, None, None, None])
            sheet.cell(row=sheet.max_row, column=1).font = _TYPE_FONT
            for program_index, (program_name, actions) in enumerate(programs.items(), start=1):
                sheet.append([f"{program_index}.", program_name, None, None])
                sheet.cell(row=sheet.max_row, column=2).font = _PROGRAM_FONT
                for action_index, (action_name, entry) in enumerate(actions.items(), start=1):
                    sheet.append([f"{program_index}.{action_index}", action_name, entry.people, entry.action_number])
                    sheet.cell(row=sheet.max_row, column=2).alignment = Alignment(wrap_text=True)
        return workbook

    def export_flat(self, tree: AggregateTree, destination: Destination) -> bool:
        if not tree:
            logger.warning("Flat export skipped: no aggregated data")
            return False
        return self._save("excel", lambda: self.build_flat_workbook(tree), destination)

    # -----------------------------------------------------------------------
    # Templates
    # -----------------------------------------------------------------------

    def _fill_section(self, sheet: Worksheet, tree: AggregateTree, columns: TemplateColumns) -> int:
        current_row = TEMPLATE_FIRST_ROW
        program_counter = 0
        for programs in tree.values():
            for program_name, actions in programs.items():
                program_counter += 1
                number = f"{program_counter}."
                sheet[f"{columns.number}{current_row}"] = number
                sheet[f"{columns.copy}{current_row}"] = number
                sheet[f"{columns.name}{current_row}"] = program_name
                sheet[f"{columns.number}{current_row}"].font = _PROGRAM_FONT
                sheet[f"{columns.name}{current_row}"].font = _PROGRAM_FONT
                current_row += 1

                for action_index, (action_name, entry) in enumerate(actions.items(), start=1):
                    number = f"{program_counter}.{action_index}"
                    sheet[f"{columns.number}{current_row}"] = number
                    sheet[f"{columns.copy}{current_row}"] = number
                    sheet[f"{columns.name}{current_row}"] = action_name
                    sheet[f"{columns.name}{current_row}"].font = _ACTION_FONT
                    count_column = (
                        columns.site_visit
                        if action_name.strip().lower() == self._settings.site_visit_keyword
                        else columns.action
                    )
                    sheet[f"{count_column}{current_row}"] = entry.action_number
                    sheet[f"{columns.people}{current_row}"] = entry.people
                    current_row += 1
        return current_row

    def fill_template(self, workbook: Workbook, tree: AggregateTree) -> None:
        """
        Write ``tree`` into the first worksheet of a loaded template.
        """

        if not workbook.worksheets:
            raise ValueError("Template worksheet not found")
        sheet = workbook.worksheets[0]
        programmed, non_programmed = split_by_program_kind(
            tree,
            non_program_keyword=self._settings.non_program_keyword,
        )
        self._fill_section(sheet, programmed, PROGRAMMED_COLUMNS)
        self._fill_section(sheet, non_programmed, NON_PROGRAMMED_COLUMNS)

    def _build_from_template(self, tree: AggregateTree, template_path: Path) -> Workbook:
        workbook = load_workbook(template_path)
        self.fill_template(workbook, tree)
        return workbook

    def export_template(self, tree: AggregateTree, destination: Destination) -> bool:
        return self._export_template("template", tree, self._settings.template_path, destination)

    def export_cumulative_template(self, tree: AggregateTree, destination: Destination) -> bool:
        return self._export_template("cumulative", tree, self._settings.cumulative_template_path, destination)

    def _export_template(
        self,
        export_format: str,
        tree: AggregateTree,
        template_path: Path,
        destination: Destination,
    ) -> bool:
        if not tree:
            logger.warning("Template export skipped: no aggregated data format=%s", export_format)
            return False
        if not template_path.is_file():
            log_event(
                logger,
                logging.WARNING,
                "meter.export.failed",
                format=export_format,
                reason="template_missing",
                template=str(template_path),
            )
            return False
        return self._save(export_format, lambda: self._build_from_template(tree, template_path), destination)

    # -----------------------------------------------------------------------
    # Dispatch
    # -----------------------------------------------------------------------

    def export(self, tree: AggregateTree, export_format: str, destination: Destination) -> bool:
        """
        Export ``tree`` in ``export_format``; raises ValueError for unknown formats.
        """

        get_export_strategy(export_format)
        handler = {
            "excel": self.export_flat,
            "template": self.export_template,
            "cumulative": self.export_cumulative_template,
        }[export_format]
        return handler(tree, destination)

    def render(self, tree: AggregateTree, export_format: str) -> bytes | None:
        """
        Return the exported workbook bytes, or None when the export failed.
        """

        buffer = io.BytesIO()
        if not self.export(tree, export_format, buffer):
            return None
        return buffer.getvalue()

    def _save(self, export_format: str, build: Callable[[], Workbook], destination: Destination) -> bool:
        try:
            workbook = build()
            workbook.save(destination)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Spreadsheet export failed format=%s", export_format)
            log_event(logger, logging.ERROR, "meter.export.failed", format=export_format, reason=str(exc))
            return False
        log_event(logger, logging.INFO, "meter.export.complete", format=export_format)
        return True


# ---------------------------------------------------------------------------
# Flat report reader
# ---------------------------------------------------------------------------


def _cell_int(value: object) -> int:
    if value is None or value == "":
        return 0
    return int(float(value))


def parse_flat_report(data: bytes) -> AggregateTree:
    """
    Rebuild the aggregate tree from a flat report workbook.
    """

    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheet = workbook.worksheets[0]
        tree: AggregateTree = {}
        current_type: str | None = None
        current_program: str | None = None
        for index_cell, name_cell, people_cell, actions_cell, *_ in sheet.iter_rows(
            min_col=1, max_col=4, values_only=True
        ):
            label = "" if index_cell is None else str(index_cell).strip()
            if _ACTION_INDEX.match(label) and current_type is not None and current_program is not None:
                tree[current_type][current_program][str(name_cell)] = ProgramAction(
                    people=_cell_int(people_cell),
                    action_number=_cell_int(actions_cell),
                )
            elif _PROGRAM_INDEX.match(label) and current_type is not None:
                current_program = str(name_cell)
                tree[current_type].setdefault(current_program, {})
            elif label:
                current_type = label
                current_program = None
                tree.setdefault(current_type, {})
        return tree
    finally:
        workbook.close()


@lru_cache(maxsize=1)
def get_spreadsheet_export_service() -> SpreadsheetExportService:
    return SpreadsheetExportService(settings=get_meter_settings())
