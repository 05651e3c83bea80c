"""Positional table reconstruction for the ATP lodging report.

Frequently-used symbols are re-exported here for convenience.
For specialised imports (column reconciliation internals, exporters,
text-mode splitting, etc.) import directly from the relevant
submodule — e.g.::

    from hospedajes.reconcile import reconcile_columns
    from hospedajes.export.csv_export import export_records_csv
    from hospedajes.tokens import split_text_line
"""

# ── Core models & config ──────────────────────────────────────────────

from .config import ConfigValidationError, ReconstructionConfig
from .models import Diagnostic, RawRecord, Record, Row, Section, Token
from .profile import LayoutProfile, load_profile

# ── Engine stages ─────────────────────────────────────────────────────

from .classify import FragmentRole, classify_fragment
from .grouping import RowStream, group_rows, rows_from_text
from .segment import segment_rows
from .stitch import ContinuationResolver, ContinuationRules, ResolverState
from .synthesize import synthesize_record

# ── Pipeline ──────────────────────────────────────────────────────────

from .ingest import IngestError, PdfMeta, ingest_pdf, ingest_pdf_bytes
from .pipeline import (
    ExtractionResult,
    ExtractionStatus,
    StageResult,
    extract_records,
    extract_records_from_text,
    run_bytes,
    run_document,
)

# ── Consumers ─────────────────────────────────────────────────────────

from .query import filter_by_category, filter_by_region, search
from .snapshot import Snapshot, initial_snapshot, next_snapshot

__all__ = [
    # Models & config
    "ConfigValidationError",
    "ReconstructionConfig",
    "Diagnostic",
    "RawRecord",
    "Record",
    "Row",
    "Section",
    "Token",
    "LayoutProfile",
    "load_profile",
    # Engine stages
    "FragmentRole",
    "classify_fragment",
    "RowStream",
    "group_rows",
    "rows_from_text",
    "segment_rows",
    "ContinuationResolver",
    "ContinuationRules",
    "ResolverState",
    "synthesize_record",
    # Pipeline
    "IngestError",
    "PdfMeta",
    "ingest_pdf",
    "ingest_pdf_bytes",
    "ExtractionResult",
    "ExtractionStatus",
    "StageResult",
    "extract_records",
    "extract_records_from_text",
    "run_bytes",
    "run_document",
    # Consumers
    "filter_by_category",
    "filter_by_region",
    "search",
    "Snapshot",
    "initial_snapshot",
    "next_snapshot",
]
