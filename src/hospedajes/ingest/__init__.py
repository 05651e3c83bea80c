"""Ingest stage — PDF file validation and metadata.

Public API
----------
- :func:`ingest_pdf` — open + validate a PDF file, return :class:`PdfMeta`
- :func:`ingest_pdf_bytes` — open + validate raw PDF bytes
- :class:`PdfMeta` — PDF-level metadata container
- :class:`PageInfo` — per-page dimensions
- :class:`IngestError` — raised on validation failures
"""

from .ingest import IngestError, PageInfo, PdfMeta, ingest_pdf, ingest_pdf_bytes

__all__ = [
    "IngestError",
    "PageInfo",
    "PdfMeta",
    "ingest_pdf",
    "ingest_pdf_bytes",
]
