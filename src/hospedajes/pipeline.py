"""Pipeline stage infrastructure and the reconstruction entry points.

Canonical stage order for one run::

    ingest → tokens → grouping → segment → sections → checks

Every stage produces a :class:`StageResult` recorded on the
:class:`ExtractionResult`.  Gating lives in :func:`gate` and timing and
error capture in :func:`run_stage`, so the PDF, bytes, token and text
entry points all behave identically.

Entry points
------------
- :func:`extract_records` — page token lists (already extracted)
- :func:`extract_records_from_text` — degraded line-oriented text
- :func:`run_document` — a PDF file on disk
- :func:`run_bytes` — raw PDF bytes from the fetch collaborator

None of them raise for bad input or a malformed section.  Problems are
returned as :class:`~hospedajes.models.Diagnostic` values and summarised
by :class:`ExtractionStatus`.
"""

from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence, Tuple

from .checks import run_document_checks
from .classify import FragmentRole
from .config import ReconstructionConfig
from .grouping import RowStream, drop_noise, rows_from_text
from .ingest import IngestError, ingest_pdf, ingest_pdf_bytes
from .models import Diagnostic, Record, Row, Section
from .profile import LayoutProfile
from .reconcile import build_field_streams, is_degenerate, reconcile_columns
from .segment import segment_rows
from .stitch import ContinuationResolver, ContinuationRules, label_row
from .synthesize import synthesize_record
from .tokens import extract_document_tokens, normalize_items

logger = logging.getLogger("hospedajes.pipeline")

# ── Skip reasons (exhaustive enumeration) ──────────────────────────────


class SkipReason(str, Enum):
    """Why a pipeline stage was skipped."""

    disabled_by_config = "disabled_by_config"
    missing_inputs = "missing_inputs"
    no_tokens = "no_tokens"
    no_rows = "no_rows"
    upstream_failed = "upstream_failed"
    not_applicable = "not_applicable"


# ── Stage result ───────────────────────────────────────────────────────


@dataclass
class StageResult:
    """Outcome record for a single pipeline stage."""

    stage: str
    enabled: bool = False
    ran: bool = False
    status: str = "skipped"  # "success" | "skipped" | "failed"
    skip_reason: Optional[str] = None
    duration_ms: int = 0
    counts: Dict[str, Any] = field(default_factory=dict)
    inputs: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize stage result to a JSON-compatible dict."""
        d: Dict[str, Any] = {
            "stage": self.stage,
            "enabled": self.enabled,
            "ran": self.ran,
            "status": self.status,
        }
        if self.skip_reason is not None:
            d["skip_reason"] = self.skip_reason
        d["duration_ms"] = self.duration_ms
        if self.counts:
            d["counts"] = self.counts
        if self.inputs:
            d["inputs"] = self.inputs
        if self.error is not None:
            d["error"] = self.error
        return d


# ── Canonical gating function ──────────────────────────────────────────

# Ordered stage names — the canonical pipeline sequence.
STAGE_ORDER: List[str] = [
    "ingest",
    "tokens",
    "grouping",
    "segment",
    "sections",
    "checks",
]


def gate(
    stage: str,
    cfg: ReconstructionConfig,
    inputs: Dict[str, Any] | None = None,
) -> tuple[bool, Optional[str]]:
    """Decide whether *stage* should run.

    Parameters
    ----------
    stage : str
        One of :data:`STAGE_ORDER`.
    cfg : ReconstructionConfig
        Effective configuration for the run.
    inputs : dict, optional
        Lightweight metadata about upstream outputs (e.g.
        ``{"tokens": 1500}``).  ``{"upstream_failed": True}`` skips any
        known stage.

    Returns
    -------
    (should_run, skip_reason)
        *should_run* is ``True`` when the stage should execute.
        When ``False``, *skip_reason* explains why.
    """
    if inputs is None:
        inputs = {}

    if stage in STAGE_ORDER and inputs.get("upstream_failed"):
        return False, SkipReason.upstream_failed.value

    if stage in ("ingest", "tokens"):
        if not inputs.get("has_input", True):
            return False, SkipReason.missing_inputs.value
        return True, None

    if stage == "grouping":
        if inputs.get("tokens", 1) == 0:
            return False, SkipReason.no_tokens.value
        return True, None

    if stage in ("segment", "sections"):
        if inputs.get("rows", 1) == 0:
            return False, SkipReason.no_rows.value
        return True, None

    if stage == "checks":
        if not cfg.enable_document_checks:
            return False, SkipReason.disabled_by_config.value
        return True, None

    # Unknown stage — treat as not applicable.
    return False, SkipReason.not_applicable.value


# ── Stage context manager ──────────────────────────────────────────────


@contextmanager
def run_stage(
    stage: str,
    cfg: ReconstructionConfig,
    inputs: Dict[str, Any] | None = None,
) -> Generator[StageResult, None, None]:
    """Context manager that wraps a pipeline stage with gating + timing.

    Usage::

        with run_stage("grouping", cfg, {"tokens": n}) as sr:
            if sr.ran:
                # … do the work …
                sr.counts["rows"] = 42

    The yielded :class:`StageResult` has ``ran=True`` only when
    :func:`gate` approves the stage.  Exceptions raised inside the block
    mark the stage failed, record the traceback and propagate.
    """
    should_run, skip_reason = gate(stage, cfg, inputs)

    sr = StageResult(stage=stage, enabled=True)
    if inputs:
        sr.inputs = inputs

    if not should_run:
        sr.ran = False
        sr.status = "skipped"
        sr.skip_reason = skip_reason
        yield sr
        return

    sr.ran = True
    t0 = time.perf_counter()
    try:
        yield sr
        if sr.status not in ("success", "failed"):
            sr.status = "success"
    except Exception as exc:
        sr.status = "failed"
        sr.error = {
            "type": type(exc).__name__,
            "message": str(exc),
            "stack": traceback.format_exc(),
        }
        raise
    finally:
        elapsed = time.perf_counter() - t0
        sr.duration_ms = int(elapsed * 1000)


# ── Result containers ──────────────────────────────────────────────────


class ExtractionStatus(str, Enum):
    """Outcome class of a run, used by callers to decide on fallback."""

    NO_INPUT = "no_input"
    NO_RECORDS = "no_records"
    PARTIAL = "partial"
    OK = "ok"


@dataclass
class SectionReport:
    """What happened to one section."""

    region: str
    page: int = 0
    declared_count: Optional[int] = None
    closed_by: str = "trailer"
    rows: int = 0
    raw_records: int = 0
    records: int = 0
    method: str = "rows"  # "rows" | "columns" | "skipped" | "failed"
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def has_problems(self) -> bool:
        return any(d.is_problem for d in self.diagnostics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region": self.region,
            "page": self.page,
            "declared_count": self.declared_count,
            "closed_by": self.closed_by,
            "rows": self.rows,
            "raw_records": self.raw_records,
            "records": self.records,
            "method": self.method,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


@dataclass
class ExtractionResult:
    """Records and run metadata for one reconstruction run."""

    source: str = ""
    records: Tuple[Record, ...] = ()
    status: ExtractionStatus = ExtractionStatus.NO_INPUT
    sections: List[SectionReport] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    stages: Dict[str, StageResult] = field(default_factory=dict)

    @property
    def sections_with_diagnostics(self) -> int:
        return sum(1 for s in self.sections if s.has_problems)

    @property
    def failed_pages(self) -> List[int]:
        return [
            d.page for d in self.diagnostics if d.check_id == "PAGE_EXTRACT_FAILED"
        ]

    @property
    def status_message(self) -> str:
        if self.status is ExtractionStatus.NO_INPUT:
            return "no input provided"
        if self.status is ExtractionStatus.NO_RECORDS:
            return "input provided but zero records extracted"
        if self.status is ExtractionStatus.PARTIAL:
            msg = (
                f"partial extraction: {self.sections_with_diagnostics} "
                f"sections had diagnostics"
            )
            if self.failed_pages:
                msg += f", {len(self.failed_pages)} pages failed extraction"
            return msg
        return f"ok: {len(self.records)} records"

    def all_diagnostics(self) -> List[Diagnostic]:
        """Section diagnostics in document order, then run-level ones."""
        out = [d for s in self.sections for d in s.diagnostics]
        out.extend(self.diagnostics)
        return out

    def to_summary_dict(self) -> Dict[str, Any]:
        """Serialize the run to a summary dict (records excluded)."""
        return {
            "source": self.source,
            "status": self.status.value,
            "status_message": self.status_message,
            "records": len(self.records),
            "sections_processed": len(self.sections),
            "sections_with_diagnostics": self.sections_with_diagnostics,
            "stages": {k: v.to_dict() for k, v in self.stages.items()},
            "sections": [s.to_dict() for s in self.sections],
            "document_diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def _decide_status(result: ExtractionResult) -> ExtractionStatus:
    if not result.records:
        return ExtractionStatus.NO_RECORDS
    if result.sections_with_diagnostics or any(
        d.is_problem for d in result.diagnostics
    ):
        return ExtractionStatus.PARTIAL
    return ExtractionStatus.OK


def _no_input(source: str, message: str, **details: Any) -> ExtractionResult:
    logger.warning("%s: %s", source or "<input>", message)
    return ExtractionResult(
        source=source,
        status=ExtractionStatus.NO_INPUT,
        diagnostics=[
            Diagnostic(
                check_id="INPUT_UNAVAILABLE",
                severity="error",
                message=message,
                details=details,
            )
        ],
    )


# ── Section processing ─────────────────────────────────────────────────


def _diag(check_id: str, severity: str, message: str, section: Section, **details):
    return Diagnostic(
        check_id=check_id,
        severity=severity,
        message=message,
        section=section.region,
        page=section.page,
        details=details,
    )


def _has_category(section: Section, profile: LayoutProfile, cfg) -> bool:
    return any(
        role is FragmentRole.CATEGORY
        for row in section.rows
        for _, role in label_row(row, profile, cfg)
    )


def _resolve_section(
    section: Section,
    report: SectionReport,
    cfg: ReconstructionConfig,
    profile: LayoutProfile,
    resolver: ContinuationResolver,
) -> list:
    """Raw records for one section, choosing rows or column streams."""
    declared = section.declared_count

    if cfg.enable_column_fallback and is_degenerate(section, profile, cfg):
        raw, diags = reconcile_columns(section, profile, cfg)
        if raw or declared is not None:
            report.method = "columns"
            report.diagnostics.append(
                _diag(
                    "SECTION_COLUMN_FALLBACK",
                    "info",
                    f"Section '{section.region}': rows carry single fields; "
                    f"rebuilt {len(raw)} records from column streams",
                    section,
                    reason="degenerate_rows",
                )
            )
            report.diagnostics.extend(diags)
            return raw

    raw = resolver.resolve(section.rows)
    if declared is None or len(raw) == declared:
        return raw

    if cfg.enable_column_fallback:
        streams = build_field_streams(section, profile, cfg)
        if len(streams.categories) == declared:
            col_raw, diags = reconcile_columns(section, profile, cfg)
            report.method = "columns"
            report.diagnostics.append(
                _diag(
                    "SECTION_COLUMN_FALLBACK",
                    "info",
                    f"Section '{section.region}': row stitching produced "
                    f"{len(raw)} records, trailer declares {declared}; "
                    f"column streams agree with the trailer",
                    section,
                    reason="count_mismatch",
                    row_records=len(raw),
                )
            )
            report.diagnostics.extend(diags)
            return col_raw

    report.diagnostics.append(
        _diag(
            "SECTION_COUNT_MISMATCH",
            "warning",
            f"Section '{section.region}': trailer declares {declared} "
            f"records, reconstructed {len(raw)}",
            section,
            declared=declared,
            reconstructed=len(raw),
        )
    )
    return raw


def process_section(
    section: Section,
    cfg: ReconstructionConfig,
    profile: LayoutProfile,
    resolver: Optional[ContinuationResolver] = None,
) -> Tuple[List[Record], SectionReport]:
    """Resolve and synthesize one section; never raises."""
    resolver = resolver or ContinuationResolver(profile, cfg)
    report = SectionReport(
        region=section.region,
        page=section.page,
        declared_count=section.declared_count,
        closed_by=section.closed_by,
        rows=len(section.rows),
    )

    try:
        if not section.region and not _has_category(section, profile, cfg):
            report.method = "skipped"
            report.diagnostics.append(
                _diag(
                    "SECTION_PREAMBLE_SKIPPED",
                    "info",
                    f"Skipped {len(section.rows)} rows before the first region",
                    section,
                )
            )
            return [], report

        if section.region and section.closed_by != "trailer":
            report.diagnostics.append(
                _diag(
                    "SECTION_NO_TRAILER",
                    "warning",
                    f"Section '{section.region}' closed by {section.closed_by} "
                    f"without a trailer",
                    section,
                    closed_by=section.closed_by,
                )
            )

        raw_records = _resolve_section(section, report, cfg, profile, resolver)
        report.raw_records = len(raw_records)

        records: List[Record] = []
        for raw in raw_records:
            rec, diags = synthesize_record(
                raw, section.region, cfg, profile, page=section.page
            )
            report.diagnostics.extend(diags)
            if rec is not None:
                records.append(rec)
    except Exception as exc:
        logger.error("section %r failed: %s", section.region, exc)
        report.method = "failed"
        report.raw_records = 0
        report.diagnostics.append(
            _diag(
                "SECTION_FAILED",
                "error",
                f"Section '{section.region}' failed: {exc}",
                section,
                type=type(exc).__name__,
            )
        )
        return [], report

    report.records = len(records)
    for d in report.diagnostics:
        if d.is_problem:
            logger.warning("%s: %s", d.check_id, d.message)
    return records, report


# ── Shared core ────────────────────────────────────────────────────────


def _run_core(
    result: ExtractionResult,
    rows: Iterable[Row],
    n_rows: int,
    cfg: ReconstructionConfig,
    profile: LayoutProfile,
    rules: Optional[ContinuationRules],
) -> ExtractionResult:
    """Segment → sections → checks; fills *result* in place."""
    resolver = ContinuationResolver(profile, cfg, rules)
    sections: List[Section] = []

    with run_stage("segment", cfg, {"rows": n_rows}) as sr_seg:
        if sr_seg.ran:
            sections = list(segment_rows(drop_noise(rows, profile), profile))
            sr_seg.counts = {
                "sections": len(sections),
                "without_trailer": sum(
                    1 for s in sections if s.closed_by != "trailer"
                ),
            }
    result.stages["segment"] = sr_seg

    records: List[Record] = []
    with run_stage("sections", cfg, {"rows": n_rows}) as sr_sec:
        if sr_sec.ran:
            for section in sections:
                recs, report = process_section(section, cfg, profile, resolver)
                records.extend(recs)
                result.sections.append(report)
            sr_sec.counts = {
                "records": len(records),
                "column_fallback": sum(
                    1 for s in result.sections if s.method == "columns"
                ),
                "failed": sum(1 for s in result.sections if s.method == "failed"),
            }
    result.stages["sections"] = sr_sec
    result.records = tuple(records)

    with run_stage("checks", cfg) as sr_chk:
        if sr_chk.ran:
            findings = run_document_checks(result.records)
            result.diagnostics.extend(findings)
            sr_chk.counts = {"findings": len(findings)}
    result.stages["checks"] = sr_chk

    result.status = _decide_status(result)
    logger.info("%s: %s", result.source or "<input>", result.status_message)
    return result


# ── Entry points ───────────────────────────────────────────────────────


def extract_records(
    pages: Optional[Iterable[Sequence[Any]]],
    cfg: Optional[ReconstructionConfig] = None,
    profile: Optional[LayoutProfile] = None,
    rules: Optional[ContinuationRules] = None,
    source: str = "<tokens>",
) -> ExtractionResult:
    """Reconstruct records from page token lists, in page order.

    Each page is a sequence of :class:`~hospedajes.models.Token` values or
    raw extractor items (pdfplumber words, pdf.js items, ``{"text", "x",
    "y"}`` dicts).  ``None`` or an empty page list is "no input".
    """
    cfg = cfg or ReconstructionConfig()
    profile = profile or LayoutProfile()

    page_list = list(pages) if pages is not None else []
    if not page_list:
        return _no_input(source, "no input provided")

    result = ExtractionResult(source=source)

    token_pages: List[list] = []
    with run_stage("tokens", cfg, {"pages": len(page_list)}) as sr_tok:
        for page_num, items in enumerate(page_list, start=1):
            token_pages.append(normalize_items(items, page_num, cfg))
        sr_tok.counts = {"tokens": sum(len(p) for p in token_pages)}
    result.stages["tokens"] = sr_tok
    n_tokens = sr_tok.counts["tokens"]

    rows: List[Row] = []
    with run_stage("grouping", cfg, {"tokens": n_tokens}) as sr_grp:
        if sr_grp.ran:
            rows = list(RowStream(token_pages, cfg))
            sr_grp.counts = {"rows": len(rows)}
    result.stages["grouping"] = sr_grp

    return _run_core(result, rows, len(rows), cfg, profile, rules)


def extract_records_from_text(
    text: Optional[str],
    cfg: Optional[ReconstructionConfig] = None,
    profile: Optional[LayoutProfile] = None,
    rules: Optional[ContinuationRules] = None,
    source: str = "<text>",
) -> ExtractionResult:
    """Degraded mode: reconstruct records from line-oriented text."""
    cfg = cfg or ReconstructionConfig()
    profile = profile or LayoutProfile()

    if text is None or not text.strip():
        return _no_input(source, "no input provided")

    result = ExtractionResult(source=source)
    with run_stage("grouping", cfg, {"chars": len(text)}) as sr_grp:
        rows = rows_from_text(text, profile, cfg)
        sr_grp.counts = {"rows": len(rows), "mode": "text"}
    result.stages["grouping"] = sr_grp

    return _run_core(result, rows, len(rows), cfg, profile, rules)


def _run_pdf(
    source: str,
    ingest,
    tokens_source,
    cfg: ReconstructionConfig,
    profile: LayoutProfile,
    rules: Optional[ContinuationRules],
) -> ExtractionResult:
    sr_ing = None
    try:
        with run_stage("ingest", cfg) as sr_ing:
            meta = ingest()
            sr_ing.counts = {"pages": meta.num_pages, "size_bytes": meta.size_bytes}
    except IngestError as exc:
        result = _no_input(source, str(exc))
        if sr_ing is not None:
            result.stages["ingest"] = sr_ing
        return result

    sr_tok = None
    try:
        with run_stage("tokens", cfg, {"pages": meta.num_pages}) as sr_tok:
            page_results = extract_document_tokens(tokens_source, cfg)
            sr_tok.counts = {
                "tokens": sum(len(p.tokens) for p in page_results),
                "empty_pages": sum(1 for p in page_results if not p.tokens),
                "failed_pages": sum(
                    1 for p in page_results if p.diagnostics.get("error")
                ),
            }
    except Exception as exc:
        return _tokens_failed(source, exc, sr_ing, sr_tok, cfg)

    page_diags = [
        Diagnostic(
            check_id="PAGE_EXTRACT_FAILED",
            severity="warning",
            message=f"Page {p.page}: token extraction failed: "
            f"{p.diagnostics['error']}",
            page=p.page,
            details={"error": p.diagnostics["error"]},
        )
        for p in page_results
        if p.diagnostics.get("error")
    ]

    result = extract_records(
        [p.tokens for p in page_results], cfg, profile, rules, source=source
    )
    result.stages["ingest"] = sr_ing
    # The page-token stage from extraction replaces the pass-through one.
    result.stages["tokens"] = sr_tok
    result.stages = {k: result.stages[k] for k in STAGE_ORDER if k in result.stages}
    if page_diags:
        result.diagnostics[:0] = page_diags
        result.status = _decide_status(result)
        logger.warning(
            "%s: %d pages failed extraction; %s",
            source,
            len(page_diags),
            result.status_message,
        )
    return result


def _tokens_failed(
    source: str,
    exc: Exception,
    sr_ing: StageResult,
    sr_tok: Optional[StageResult],
    cfg: ReconstructionConfig,
) -> ExtractionResult:
    """Result for a document that ingested but could not be read at all."""
    logger.error("%s: token extraction failed: %s", source, exc)
    result = ExtractionResult(
        source=source,
        status=ExtractionStatus.NO_RECORDS,
        diagnostics=[
            Diagnostic(
                check_id="TOKENS_FAILED",
                severity="error",
                message=f"Token extraction failed: {exc}",
                details={"type": type(exc).__name__},
            )
        ],
    )
    result.stages["ingest"] = sr_ing
    if sr_tok is not None:
        result.stages["tokens"] = sr_tok
    for stage in STAGE_ORDER[STAGE_ORDER.index("tokens") + 1 :]:
        with run_stage(stage, cfg, {"upstream_failed": True}) as sr:
            pass
        result.stages[stage] = sr
    return result


def run_document(
    pdf_path: Path | str,
    cfg: Optional[ReconstructionConfig] = None,
    profile: Optional[LayoutProfile] = None,
    rules: Optional[ContinuationRules] = None,
) -> ExtractionResult:
    """Reconstruct records from a PDF file on disk.

    Parameters
    ----------
    pdf_path : Path or str
        The published report.
    cfg : ReconstructionConfig, optional
        Tunables.  Defaults to ``ReconstructionConfig()``.
    profile : LayoutProfile, optional
        Layout data.  Defaults to the built-in profile.
    rules : ContinuationRules, optional
        Active continuation rules.

    Returns
    -------
    ExtractionResult
        ``status`` is ``no_input`` when the file cannot be ingested.
    """
    cfg = cfg or ReconstructionConfig()
    profile = profile or LayoutProfile()
    pdf_path = Path(pdf_path)
    return _run_pdf(
        str(pdf_path),
        lambda: ingest_pdf(pdf_path),
        pdf_path,
        cfg,
        profile,
        rules,
    )


def run_bytes(
    data: Optional[bytes],
    source: str = "<bytes>",
    cfg: Optional[ReconstructionConfig] = None,
    profile: Optional[LayoutProfile] = None,
    rules: Optional[ContinuationRules] = None,
) -> ExtractionResult:
    """Reconstruct records from raw PDF bytes (e.g. a fresh download)."""
    cfg = cfg or ReconstructionConfig()
    profile = profile or LayoutProfile()
    if not data:
        return _no_input(source, "no input provided")
    return _run_pdf(
        source,
        lambda: ingest_pdf_bytes(data, source),
        data,
        cfg,
        profile,
        rules,
    )
