"""Normalise heterogeneous extractor output into :class:`Token` values.

Three input shapes are accepted per item:

``pdfplumber`` word dicts
    ``{"text", "x0", "top", "bottom", ...}`` — top-left origin; ``y`` is
    flipped to a bottom-left origin using the page height.
pdf.js text items
    ``{"str", "transform": [a, b, c, d, e, f]}`` — ``x = e``, ``y = f``.
Generic dicts
    ``{"text", "x", "y"}`` — taken as-is.

The degraded text mode (line-oriented text, no coordinates) is handled by
:func:`split_text_line`, which carves one line into fragments.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Iterable, List, Optional

from ..classify import EMAIL_RE, PHONE_RE, is_section_trailer, parse_region_header
from ..config import ReconstructionConfig
from ..models import Token
from ..profile import LayoutProfile

log = logging.getLogger(__name__)

# Control-character regex: U+0000–U+001F (except \t \n \r) plus BOM
_RE_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufeff]")
# Column separators in line-oriented text: 2+ spaces, tabs, pipes.
_RE_COLUMN_SPLIT = re.compile(r"\s{2,}|\t|\|")
_RE_CONTACT = re.compile(f"{EMAIL_RE.pattern}|{PHONE_RE.pattern}")


def clean_fragment_text(text: str, cfg: ReconstructionConfig) -> str:
    """Apply control-char removal, NFKC and whitespace collapse."""
    if cfg.filter_control_chars:
        text = _RE_CONTROL.sub("", text)
    if cfg.normalize_unicode:
        text = unicodedata.normalize("NFKC", text)
    return re.sub(r"\s+", " ", text).strip()


def token_from_item(
    item: dict,
    page: int,
    cfg: ReconstructionConfig | None = None,
    page_height: Optional[float] = None,
) -> Optional[Token]:
    """Convert one extractor item into a Token; ``None`` if it is blank."""
    if cfg is None:
        cfg = ReconstructionConfig()

    if "str" in item and "transform" in item:
        text = item.get("str", "")
        transform = item.get("transform") or [0, 0, 0, 0, 0, 0]
        x, y = float(transform[4]), float(transform[5])
    elif "x0" in item and "top" in item:
        text = item.get("text", "")
        x = float(item.get("x0", 0.0))
        bottom = float(item.get("bottom", item.get("top", 0.0)))
        y = (page_height - bottom) if page_height is not None else -bottom
    else:
        text = item.get("text", "")
        x = float(item.get("x", 0.0))
        y = float(item.get("y", 0.0))

    text = clean_fragment_text(str(text or ""), cfg)
    if not text:
        return None
    return Token(text=text, x=x, y=y, page=int(item.get("page", page)))


def normalize_items(
    items: Iterable[Any],
    page: int,
    cfg: ReconstructionConfig | None = None,
    page_height: Optional[float] = None,
) -> List[Token]:
    """Normalise a page's worth of extractor items.

    Items that are already :class:`Token` values pass through unchanged.
    """
    if cfg is None:
        cfg = ReconstructionConfig()
    tokens: List[Token] = []
    skipped = 0
    for item in items:
        if isinstance(item, Token):
            tokens.append(item)
            continue
        tok = token_from_item(item, page, cfg, page_height)
        if tok is None:
            skipped += 1
        else:
            tokens.append(tok)
    if skipped:
        log.debug("page %d: %d blank fragments dropped", page, skipped)
    return tokens


# ── Degraded text mode ─────────────────────────────────────────────────


def _carve_contacts(piece: str) -> List[str]:
    """Split *piece* around email and phone substrings."""
    parts: List[str] = []
    pos = 0
    for m in _RE_CONTACT.finditer(piece):
        before = piece[pos : m.start()].strip()
        if before:
            parts.append(before)
        parts.append(m.group(0).strip())
        pos = m.end()
    rest = piece[pos:].strip()
    if rest:
        parts.append(rest)
    return parts


def _split_trailing_category(piece: str, profile: LayoutProfile) -> List[str]:
    """Split ``"Casa Verde Hostal Familiar"`` into name + category."""
    tail = profile.longest_trailing_category(piece)
    if not tail:
        return [piece]
    head = piece[: len(piece) - len(tail)].strip()
    if not head:
        return [piece]
    return [head, tail]


def split_text_line(
    line: str,
    profile: LayoutProfile,
    cfg: ReconstructionConfig | None = None,
) -> List[str]:
    """Carve one text line into fragments for the degraded input mode."""
    if cfg is None:
        cfg = ReconstructionConfig()
    line = _RE_CONTROL.sub("", line) if cfg.filter_control_chars else line
    if cfg.normalize_unicode:
        line = unicodedata.normalize("NFKC", line)

    # Section markers stay whole, however the line is spaced.
    collapsed = re.sub(r"\s+", " ", line).strip()
    if is_section_trailer(collapsed, profile) or (
        parse_region_header(collapsed, profile) is not None
    ):
        return [collapsed]

    fragments: List[str] = []
    for piece in _RE_COLUMN_SPLIT.split(line):
        piece = piece.strip()
        if not piece:
            continue
        for part in _carve_contacts(piece):
            if cfg.text_split_trailing_category and "@" not in part:
                fragments.extend(_split_trailing_category(part, profile))
            else:
                fragments.append(part)
    return [re.sub(r"\s+", " ", f) for f in fragments if f.strip()]
