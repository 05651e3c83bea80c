"""Ingest stage — PDF validation and page metadata.

Centralises PDF opening and validation so that downstream stages never
call ``pdfplumber.open()`` on unchecked input.  The report arrives either
as a file on disk or as raw bytes handed over by the fetch collaborator.

Public API
----------
- :func:`ingest_pdf` — validate + open a PDF file, return a :class:`PdfMeta`
- :func:`ingest_pdf_bytes` — same for raw PDF bytes
- :class:`PdfMeta` — lightweight PDF-level metadata container
- :class:`PageInfo` — per-page dimensions
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import pdfplumber

log = logging.getLogger(__name__)

_PDF_MAGIC = b"%PDF-"


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass
class PageInfo:
    """Dimension metadata for a single PDF page."""

    number: int  # one-based page number
    width: float  # points
    height: float  # points

    def to_dict(self) -> dict:
        """Serialize page info to a JSON-compatible dict."""
        return {
            "number": self.number,
            "width": round(self.width, 3),
            "height": round(self.height, 3),
        }


@dataclass
class PdfMeta:
    """PDF-level metadata returned by :func:`ingest_pdf`.

    This is a lightweight descriptor; it does **not** hold the
    ``pdfplumber.PDF`` handle open.
    """

    source: str
    num_pages: int
    pages: List[PageInfo] = field(default_factory=list)
    size_bytes: int = 0
    pdf_metadata: dict = field(default_factory=dict)  # PDF info dict

    def page(self, number: int) -> PageInfo:
        """Return :class:`PageInfo` for one-based page *number*."""
        return self.pages[number - 1]

    def to_dict(self) -> dict:
        """Serialize PDF metadata to a JSON-compatible dict."""
        d: dict = {
            "source": self.source,
            "num_pages": self.num_pages,
            "size_bytes": self.size_bytes,
        }
        if self.pdf_metadata:
            d["pdf_metadata"] = self.pdf_metadata
        d["pages"] = [p.to_dict() for p in self.pages]
        return d


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


class IngestError(Exception):
    """Raised when a PDF cannot be ingested."""


def _validate_pdf_path(pdf_path: Path) -> None:
    """Raise :class:`IngestError` for missing / empty / wrong-extension files."""
    if not pdf_path.exists():
        raise IngestError(f"File not found: {pdf_path}")
    if not pdf_path.is_file():
        raise IngestError(f"Not a file: {pdf_path}")
    if pdf_path.stat().st_size == 0:
        raise IngestError(f"Empty file: {pdf_path}")
    if pdf_path.suffix.lower() != ".pdf":
        raise IngestError(f"Not a PDF (suffix={pdf_path.suffix!r}): {pdf_path}")


def _validate_pdf_bytes(data: bytes) -> None:
    if not data:
        raise IngestError("Empty PDF payload")
    if not data.lstrip()[:5] == _PDF_MAGIC:
        raise IngestError("Payload is not a PDF (missing %PDF- header)")


def _coerce_metadata(raw_meta: dict) -> dict:
    """Coerce a PDF info dict to a simple ``str → str`` dict."""
    pdf_metadata = {}
    for k, v in (raw_meta or {}).items():
        if isinstance(v, bytes):
            v = v.decode("utf-8", errors="replace")
        pdf_metadata[str(k)] = str(v) if v is not None else ""
    return pdf_metadata


def _read_meta(handle, source: str, size_bytes: int) -> PdfMeta:
    with pdfplumber.open(handle) as pdf:
        # pdfminer sets is_extractable = False on password-protected
        # documents that cannot be read.
        if hasattr(pdf, "doc") and hasattr(pdf.doc, "is_extractable"):
            if not pdf.doc.is_extractable:
                raise IngestError(
                    f"PDF is password-protected or encrypted "
                    f"(text extraction not permitted): {source}"
                )
        pages = [
            PageInfo(number=i + 1, width=float(pg.width), height=float(pg.height))
            for i, pg in enumerate(pdf.pages)
        ]
        pdf_metadata = _coerce_metadata(pdf.metadata or {})

    return PdfMeta(
        source=source,
        num_pages=len(pages),
        pages=pages,
        size_bytes=size_bytes,
        pdf_metadata=pdf_metadata,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def ingest_pdf(pdf_path: Path | str) -> PdfMeta:
    """Open and validate a PDF file, returning a :class:`PdfMeta` descriptor.

    Raises
    ------
    IngestError
        When the file is missing, empty, or cannot be opened as a PDF.
    """
    pdf_path = Path(pdf_path)
    _validate_pdf_path(pdf_path)

    try:
        meta = _read_meta(pdf_path, str(pdf_path), pdf_path.stat().st_size)
    except IngestError:
        raise
    except Exception as exc:
        raise IngestError(f"Cannot open PDF: {exc}") from exc

    log.info(
        "Ingested %s: %d pages, %.1f KB",
        pdf_path.name,
        meta.num_pages,
        meta.size_bytes / 1024,
    )
    return meta


def ingest_pdf_bytes(data: bytes, source: str = "<bytes>") -> PdfMeta:
    """Validate raw PDF bytes supplied by the fetch collaborator."""
    _validate_pdf_bytes(data)
    try:
        meta = _read_meta(io.BytesIO(data), source, len(data))
    except IngestError:
        raise
    except Exception as exc:
        raise IngestError(f"Cannot open PDF: {exc}") from exc

    log.info("Ingested %s: %d pages, %d bytes", source, meta.num_pages, len(data))
    return meta
