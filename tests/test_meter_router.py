"""
tests/test_meter_router.py

HTTP contract of the meter endpoints.
"""

from __future__ import annotations

import io
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from meter.api.routers.meter_router import _http_error
from meter.config import MeterSettings
from meter.errors import FileCorruptedError, ProcessingError
from meter.main import create_app
from meter.services.meter_service import MeterService, get_meter_service
from meter.services.spreadsheet_export_service import XLSX_MEDIA_TYPE

ROWS = [
    ["PROGRAMOWE", "Trzymaj Formę", "Wykład", 60, 1, "2024-01-15"],
    ["NIEPROGRAMOWE", "Seniorzy", "Wizytacja", 10, 1, "2024-01-21"],
    ["NIEPROGRAMOWE", "Seniorzy", "Poradnictwo", 5, 1, "2024-02-02"],
]
ALL_MONTHS = [("months", month) for month in range(1, 13)]


def _files(data: bytes, filename: str = "report.xlsx", content_type: str = XLSX_MEDIA_TYPE) -> dict:
    return {"file": (filename, data, content_type)}


@pytest.fixture()
def meter_settings() -> MeterSettings:
    return MeterSettings(log_row_warnings=False)


@pytest.fixture()
def client(meter_settings: MeterSettings) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_meter_service] = lambda: MeterService(settings=meter_settings)
    return TestClient(app)


@pytest.fixture()
def upload(workbook_bytes) -> bytes:
    return workbook_bytes(ROWS)


class TestAggregate:
    def test_report(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/aggregate", params=ALL_MONTHS, files=_files(upload))

        assert response.status_code == 200
        payload = response.json()
        assert payload["file_name"] == "report.xlsx"
        assert payload["aggregated"]["all_people"] == 65
        assert payload["aggregated"]["tree"]["PROGRAMOWE"]["Trzymaj Formę"]["Wykład"] == {"people": 60, "action_number": 1}
        assert len(payload["aggregated"]["warnings"]) == 1
        assert payload["indicator_view"]["total_people"] == 65
        assert [category["category"] for category in payload["main_categories"]["categories"]][-1] == "Inne"

    def test_missing_month_selection(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/aggregate", files=_files(upload))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "no_months_selected"

    def test_month_out_of_range(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/aggregate", params=[("months", 13)], files=_files(upload))
        assert response.status_code == 400

    def test_non_spreadsheet_upload(self, client: TestClient) -> None:
        response = client.post("/meter/aggregate", params=ALL_MONTHS, files=_files(b"a,b", "data.csv", "text/csv"))

        assert response.status_code == 400
        assert response.json()["detail"] == "Only Excel workbooks (.xlsx) are allowed."

    def test_corrupted_workbook(self, client: TestClient) -> None:
        response = client.post("/meter/aggregate", params=ALL_MONTHS, files=_files(b"not a workbook"))

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "file_corrupted"

    def test_invalid_cell_points_at_row(self, client: TestClient, workbook_bytes) -> None:
        data = workbook_bytes([["PROGRAMOWE", "A", "Wykład", -4, 1, "2024-01-15"]])

        response = client.post("/meter/aggregate", params=ALL_MONTHS, files=_files(data))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert (detail["code"], detail["row_number"], detail["column"]) == ("invalid_value", 2, "Liczba ludzi")


class TestIndicators:
    def test_catalogue(self, client: TestClient) -> None:
        response = client.get("/meter/indicators")

        assert response.status_code == 200
        groups = response.json()
        assert groups[0]["name"] == "Zdrowotne"
        assert any(indicator["id"] == "palenie_tytoniu" for group in groups for indicator in group["indicators"])

    def test_regroup_without_months_covers_the_year(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/indicators", files=_files(upload))

        assert response.status_code == 200
        assert response.json()["total_people"] == 65

    def test_unknown_indicator(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/indicators", params={"indicator_id": "nope"}, files=_files(upload))
        assert response.status_code == 400


class TestTasks:
    def test_tasks_for_month(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/tasks", params=[("months", 2)], files=_files(upload))

        assert response.status_code == 200
        assert response.json() == [
            {
                "row_number": 4,
                "program_type": "NIEPROGRAMOWE",
                "program_name": "Seniorzy",
                "action": "Poradnictwo",
                "people": 5,
                "action_number": 1,
                "date": "2024-02-02",
                "display_date": "02.02.2024",
            }
        ]


class TestExport:
    def test_flat_download(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/export", params=ALL_MONTHS, files=_files(upload))

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert 'filename="miernik-budzetowy ' in response.headers["content-disposition"]
        assert load_workbook(io.BytesIO(response.content)).active.title == "Miernik"

    def test_invalid_format(self, client: TestClient, upload: bytes) -> None:
        response = client.post("/meter/export", params=ALL_MONTHS + [("format", "pdf")], files=_files(upload))
        assert response.status_code == 400

    def test_failed_export_is_unprocessable(self, upload: bytes, tmp_path: Path) -> None:
        app = create_app()
        settings = MeterSettings(template_path=tmp_path / "missing.xlsx")
        app.dependency_overrides[get_meter_service] = lambda: MeterService(settings=settings)

        response = TestClient(app).post(
            "/meter/export",
            params=ALL_MONTHS + [("format", "template")],
            files=_files(upload),
        )

        assert response.status_code == 422


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_processing_errors_map_to_server_error() -> None:
    assert _http_error(ProcessingError("boom")).status_code == 500
    assert _http_error(FileCorruptedError("bad")).status_code == 400
