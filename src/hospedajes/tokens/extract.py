"""PDF text-layer token extraction — single source of pdfplumber word access.

Each page's words are pulled with ``Page.extract_words`` and normalised
through :func:`~hospedajes.tokens.adapter.token_from_item`, so the rest
of the engine only ever sees :class:`~hospedajes.models.Token` values
with a bottom-left origin.

Pages are independent at this stage; ordering across pages is restored
by the caller, which receives one token list per page in page order.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pdfplumber

from ..config import ReconstructionConfig
from ..models import Token
from .adapter import token_from_item

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------------


@dataclass
class TokenPageResult:
    """Output of a single-page token extraction."""

    page: int
    tokens: list[Token]
    page_width: float
    page_height: float
    diagnostics: dict[str, Any] = field(default_factory=dict)


def _empty_diagnostics(cfg: ReconstructionConfig) -> dict[str, Any]:
    """Return a zero-valued diagnostics dict with the full schema."""
    return {
        "extraction_params": {
            "x_tolerance": cfg.x_tolerance,
            "y_tolerance": cfg.y_tolerance,
            "keep_blank_chars": cfg.keep_blank_chars,
            "filter_control_chars": cfg.filter_control_chars,
            "normalize_unicode": cfg.normalize_unicode,
        },
        "tokens_raw": 0,
        "tokens_total": 0,
        "tokens_blank_dropped": 0,
        "tokens_rotated_dropped": 0,
        "error": None,
    }


def _build_extract_words_kwargs(cfg: ReconstructionConfig) -> dict[str, Any]:
    """Build ``pdfplumber.Page.extract_words`` keyword arguments."""
    kw: dict[str, Any] = {
        "x_tolerance": cfg.x_tolerance,
        "y_tolerance": cfg.y_tolerance,
        "extra_attrs": ["upright"],
    }
    if cfg.keep_blank_chars:
        kw["keep_blank_chars"] = True
    return kw


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_page_tokens(
    page: "pdfplumber.page.Page",
    page_num: int,
    cfg: ReconstructionConfig | None = None,
) -> TokenPageResult:
    """Extract tokens from an already-opened pdfplumber Page.

    Parameters
    ----------
    page : pdfplumber.page.Page
        An opened page object.
    page_num : int
        One-based page number (stored in each Token).
    cfg : ReconstructionConfig, optional
        Extraction configuration.  Defaults are used when ``None``.

    Returns
    -------
    TokenPageResult
    """
    if cfg is None:
        cfg = ReconstructionConfig()

    page_w = float(page.width)
    page_h = float(page.height)
    diag = _empty_diagnostics(cfg)

    words = page.extract_words(**_build_extract_words_kwargs(cfg))
    diag["tokens_raw"] = len(words)

    tokens: list[Token] = []
    for w in words:
        # Rotated text is stamps and watermarks, never table content.
        if w.get("upright") is False:
            diag["tokens_rotated_dropped"] += 1
            continue
        tok = token_from_item(w, page_num, cfg, page_height=page_h)
        if tok is None:
            diag["tokens_blank_dropped"] += 1
            continue
        tokens.append(tok)

    diag["tokens_total"] = len(tokens)
    if not tokens:
        log.warning(
            "page %d: zero tokens extracted (blank or image-only page)", page_num
        )

    return TokenPageResult(
        page=page_num,
        tokens=tokens,
        page_width=page_w,
        page_height=page_h,
        diagnostics=diag,
    )


def _failed_page(
    page_num: int, exc: Exception, cfg: ReconstructionConfig
) -> TokenPageResult:
    log.error("page %d: token extraction failed: %s", page_num, exc)
    diag = _empty_diagnostics(cfg)
    diag["error"] = f"{type(exc).__name__}: {exc}"
    return TokenPageResult(
        page=page_num,
        tokens=[],
        page_width=0.0,
        page_height=0.0,
        diagnostics=diag,
    )


def _extract_from_pdf(pdf, cfg: ReconstructionConfig) -> list[TokenPageResult]:
    results = []
    for idx, page in enumerate(pdf.pages):
        page_num = getattr(page, "page_number", idx + 1)
        try:
            results.append(extract_page_tokens(page, page_num, cfg))
        except Exception as exc:
            results.append(_failed_page(page_num, exc, cfg))
    return results


def extract_document_tokens(
    source: Path | str | bytes,
    cfg: ReconstructionConfig | None = None,
) -> list[TokenPageResult]:
    """Extract tokens from every page of a PDF path or raw PDF bytes.

    Pages are returned in document order.  A page whose extraction raises
    comes back with no tokens and ``diagnostics["error"]`` set; errors
    opening the document propagate to the caller.
    """
    if cfg is None:
        cfg = ReconstructionConfig()

    handle = io.BytesIO(source) if isinstance(source, bytes) else source
    with pdfplumber.open(handle) as pdf:
        results = _extract_from_pdf(pdf, cfg)

    log.info(
        "extracted %d tokens from %d pages",
        sum(len(r.tokens) for r in results),
        len(results),
    )
    return results
