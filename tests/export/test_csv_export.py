"""Tests for the export module."""

import csv
import json
from pathlib import Path

from conftest import make_record

from hospedajes.export import (
    DIAGNOSTIC_FIELDS,
    export_diagnostics_csv,
    export_records_csv,
    export_records_json,
    export_result,
    load_records_json,
)
from hospedajes.models import RECORD_FIELDS, Diagnostic
from hospedajes.pipeline import extract_records

# ── Helpers ────────────────────────────────────────────────────────────


def _read_csv(path: Path) -> list[dict]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))


# ── Records ────────────────────────────────────────────────────────────


def test_records_csv_columns(tmp_path):
    records = [
        make_record("Casa Verde", email="info@casaverde.com", phone="61234567"),
        make_record("Cabañas Don Pepe", "Cabaña", region="Bocas del Toro"),
    ]
    path = export_records_csv(records, tmp_path / "nested" / "records.csv")
    rows = _read_csv(path)
    assert list(rows[0]) == list(RECORD_FIELDS)
    assert rows[0]["email"] == "info@casaverde.com"
    assert rows[1]["name"] == "Cabañas Don Pepe"
    assert rows[1]["region"] == "Bocas del Toro"


def test_records_csv_empty(tmp_path):
    path = export_records_csv([], tmp_path / "records.csv")
    assert path.read_text(encoding="utf-8").strip() == ",".join(RECORD_FIELDS)


def test_records_json_reloads(tmp_path):
    records = [make_record("Posada del Río", "Posada", phone="7751234")]
    path = export_records_json(records, tmp_path / "records.json")
    assert "Río" in path.read_text(encoding="utf-8")
    assert load_records_json(path) == records


# ── Diagnostics ────────────────────────────────────────────────────────


def test_diagnostics_csv(tmp_path):
    diags = [
        Diagnostic(
            check_id="SECTION_NO_TRAILER",
            severity="warning",
            message="Section 'Coclé' closed by end without a trailer",
            section="Coclé",
            page=3,
        ),
        Diagnostic(check_id="DOC_NO_CONTACT", severity="info", message="2 of 9"),
    ]
    rows = _read_csv(export_diagnostics_csv(diags, tmp_path / "diag.csv"))
    assert list(rows[0]) == list(DIAGNOSTIC_FIELDS)
    assert rows[0]["page"] == "3"
    assert rows[1]["section"] == ""
    assert rows[1]["page"] == ""


# ── Consolidated export ────────────────────────────────────────────────


class TestExportResult:
    def test_all_artefacts(self, tmp_path, chiriqui_page):
        page = chiriqui_page[:-1]  # no trailer: one warning diagnostic
        result = extract_records([page], source="reporte.pdf")
        paths = export_result(result, tmp_path, "reporte vigente")

        assert set(paths) == {"records_csv", "records_json", "diagnostics", "summary"}
        assert paths["records_csv"].endswith("reporte_vigente_records.csv")
        assert len(_read_csv(Path(paths["records_csv"]))) == 2
        diag_rows = _read_csv(Path(paths["diagnostics"]))
        assert [r["check_id"] for r in diag_rows] == ["SECTION_NO_TRAILER"]

        summary = json.loads(Path(paths["summary"]).read_text(encoding="utf-8"))
        assert summary["status"] == "partial"
        assert summary["sections_with_diagnostics"] == 1

    def test_optional_record_files(self, tmp_path, chiriqui_page):
        result = extract_records([chiriqui_page])
        paths = export_result(
            result, tmp_path, "r", csv_records=False, json_records=False
        )
        assert set(paths) == {"summary"}
