"""
meter/api/routers/meter_router.py

Activity meter HTTP endpoints.

POST /meter/aggregate   full report (rollup, indicators, main categories)
POST /meter/indicators  indicator regrouping only
POST /meter/tasks       month-filtered task rows for form prefill
POST /meter/export      xlsx download (format: excel | template | cumulative)
GET  /meter/indicators  indicator catalogue

The router only handles HTTP plumbing; all work lives in MeterService.
"""

from __future__ import annotations

import io
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from indicators.definitions import get_indicator_catalog
from meter.api.dependencies import get_month_selection, get_spreadsheet_upload
from meter.errors import MeterError, ProcessingError
from meter.schemas.meter import (
    IndicatorAggregationResponse,
    MeterReportResponse,
    TaskEntryResponse,
    indicator_response,
    report_response,
    task_response,
)
from meter.services.meter_service import MeterService, get_meter_service
from meter.services.spreadsheet_export_service import EXPORT_STRATEGIES, XLSX_MEDIA_TYPE

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meter", tags=["meter"])


def _read_upload(file: UploadFile) -> tuple[str, bytes]:
    try:
        return file.filename or "", file.file.read()
    finally:
        file.file.close()


def _http_error(exc: MeterError) -> HTTPException:
    if isinstance(exc, ProcessingError):
        logger.error("Meter processing failed: %s", exc)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=exc.to_dict(),
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict())


@router.post("/aggregate", response_model=MeterReportResponse)
def aggregate_upload(
    file: UploadFile = Depends(get_spreadsheet_upload),
    months: list[int] = Depends(get_month_selection),
    indicator_id: str | None = Query(default=None, description="Regroup by this indicator's program groups"),
    service: MeterService = Depends(get_meter_service),
) -> MeterReportResponse:
    """
    Aggregate one activity workbook for the selected months.
    """

    filename, data = _read_upload(file)
    try:
        report = service.process_upload(
            filename=filename,
            data=data,
            months=months,
            indicator_id=indicator_id,
        )
    except MeterError as exc:
        raise _http_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return report_response(report)


@router.post("/indicators", response_model=IndicatorAggregationResponse)
def regroup_upload(
    file: UploadFile = Depends(get_spreadsheet_upload),
    months: list[int] = Depends(get_month_selection),
    indicator_id: str | None = Query(default=None),
    use_all_groupings: bool = Query(default=False),
    service: MeterService = Depends(get_meter_service),
) -> IndicatorAggregationResponse:
    """
    Regroup one activity workbook by health category and program groups.

    An empty month selection means every month.
    """

    filename, data = _read_upload(file)
    try:
        result = service.regroup_upload(
            filename=filename,
            data=data,
            months=months,
            indicator_id=indicator_id,
            use_all_groupings=use_all_groupings,
        )
    except MeterError as exc:
        raise _http_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return indicator_response(result)


@router.get("/indicators")
def list_indicators() -> list[dict[str, object]]:
    """
    Return the indicator catalogue grouped as configured.
    """

    return [
        {
            "name": group.name,
            "indicators": [
                {
                    "id": indicator.id,
                    "name": indicator.name,
                    "description": indicator.description,
                    "program_groups": {name: list(members) for name, members in indicator.program_groups.items()},
                }
                for indicator in group.indicators
            ],
        }
        for group in get_indicator_catalog().groups()
    ]


@router.post("/tasks", response_model=list[TaskEntryResponse])
def list_upload_tasks(
    file: UploadFile = Depends(get_spreadsheet_upload),
    months: list[int] = Depends(get_month_selection),
    service: MeterService = Depends(get_meter_service),
) -> list[TaskEntryResponse]:
    """
    List the activities of the selected months for form prefill.
    """

    filename, data = _read_upload(file)
    try:
        entries = service.list_upload_tasks(filename=filename, data=data, months=months)
    except MeterError as exc:
        raise _http_error(exc) from exc
    return [task_response(entry) for entry in entries]


@router.post("/export", summary="Export aggregated activity as a workbook")
def export_upload(
    file: UploadFile = Depends(get_spreadsheet_upload),
    months: list[int] = Depends(get_month_selection),
    export_format: str = Query(default="excel", alias="format"),
    service: MeterService = Depends(get_meter_service),
) -> StreamingResponse:
    """
    Aggregate one workbook and stream the export as an .xlsx download.
    """

    if export_format not in EXPORT_STRATEGIES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid format {export_format!r}. Must be one of: {sorted(EXPORT_STRATEGIES)}.",
        )

    filename, data = _read_upload(file)
    try:
        exported = service.export_upload(
            filename=filename,
            data=data,
            months=months,
            export_format=export_format,
        )
    except MeterError as exc:
        raise _http_error(exc) from exc

    if exported is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Export produced no file; see server logs for details.",
        )

    logger.info("Meter export format=%r file=%r bytes=%d", export_format, exported.file_name, len(exported.content))
    return StreamingResponse(
        content=io.BytesIO(exported.content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{exported.file_name}"'},
    )
