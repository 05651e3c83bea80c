"""Export module: write reconstructed records and run summaries to disk.

Generates a records CSV, a records JSON, a diagnostics CSV and a run
summary JSON from an :class:`~hospedajes.pipeline.ExtractionResult`.

Usage::

    from hospedajes.export import export_result
    paths = export_result(result, Path("out"), "reporte")

Or one file at a time::

    from hospedajes.export import export_records_csv
    export_records_csv(result.records, Path("out/records.csv"))
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from ..models import RECORD_FIELDS, Diagnostic, Record

DIAGNOSTIC_FIELDS = ("check_id", "severity", "section", "page", "message")


def _safe_str(val: Any) -> str:
    """Convert to string, handling None gracefully."""
    if val is None:
        return ""
    return str(val)


# ── Records ────────────────────────────────────────────────────────────


def export_records_csv(records: Iterable[Record], out_path: Path) -> Path:
    """Write one CSV row per record, columns in :data:`RECORD_FIELDS` order."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(RECORD_FIELDS))
        writer.writeheader()
        for rec in records:
            writer.writerow(rec.to_dict())
    return out_path


def export_records_json(records: Iterable[Record], out_path: Path) -> Path:
    """Write records as a JSON array of objects."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [rec.to_dict() for rec in records]
    out_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    return out_path


def load_records_json(path: Path) -> List[Record]:
    """Read records written by :func:`export_records_json`."""
    data = json.loads(path.read_text(encoding="utf-8"))
    return [Record.from_dict(d) for d in data]


# ── Diagnostics / summary ──────────────────────────────────────────────


def export_diagnostics_csv(diagnostics: Sequence[Diagnostic], out_path: Path) -> Path:
    """Write one CSV row per diagnostic."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=list(DIAGNOSTIC_FIELDS))
        writer.writeheader()
        for d in diagnostics:
            writer.writerow(
                {
                    "check_id": d.check_id,
                    "severity": d.severity,
                    "section": _safe_str(d.section),
                    "page": d.page or "",
                    "message": d.message,
                }
            )
    return out_path


def export_summary_json(result, out_path: Path) -> Path:
    """Write ``result.to_summary_dict()`` as JSON."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(result.to_summary_dict(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return out_path


# ── Consolidated export ────────────────────────────────────────────────


def export_result(
    result,
    out_dir: Path,
    stem: str,
    *,
    csv_records: bool = True,
    json_records: bool = True,
) -> Dict[str, str]:
    """Export every artefact of one run into *out_dir*.

    Returns a dict of export names → file paths.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = stem.replace(" ", "_")
    exported: Dict[str, str] = {}

    if csv_records:
        path = export_records_csv(result.records, out_dir / f"{stem}_records.csv")
        exported["records_csv"] = str(path)
    if json_records:
        path = export_records_json(result.records, out_dir / f"{stem}_records.json")
        exported["records_json"] = str(path)

    diagnostics = result.all_diagnostics()
    if diagnostics:
        path = export_diagnostics_csv(diagnostics, out_dir / f"{stem}_diagnostics.csv")
        exported["diagnostics"] = str(path)

    path = export_summary_json(result, out_dir / f"{stem}_summary.json")
    exported["summary"] = str(path)
    return exported
