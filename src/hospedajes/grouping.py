from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence

from .classify import is_noise_literal
from .config import ReconstructionConfig
from .models import Row, Token
from .profile import LayoutProfile
from .tokens.adapter import split_text_line

log = logging.getLogger(__name__)


def group_rows(tokens: Sequence[Token], settings: ReconstructionConfig) -> List[Row]:
    """Cluster one page's tokens into rows by vertical position.

    Single pass in input order: a token joins the first existing row
    whose key lies within ``row_y_tolerance`` of its ``y``; otherwise its
    own ``y`` becomes a new row key.  Keys are never re-centred, so the
    result depends on input order and is reproducible for a given order.

    Rows come back top-to-bottom (descending ``y``), tokens left-to-right.
    """
    if not tokens:
        return []

    tol = settings.row_y_tolerance
    keys: List[float] = []
    buckets: List[List[Token]] = []

    for tok in tokens:
        placed = False
        for i, key in enumerate(keys):
            if abs(tok.y - key) <= tol:
                buckets[i].append(tok)
                placed = True
                break
        if not placed:
            keys.append(tok.y)
            buckets.append([tok])

    rows = [
        Row(page=bucket[0].page, y=key, tokens=sorted(bucket, key=lambda t: t.x))
        for key, bucket in zip(keys, buckets)
    ]
    rows.sort(key=lambda r: -r.y)
    return rows


class RowStream:
    """Lazy, restartable row sequence over pages in page order.

    Each iteration regroups the pages from scratch, so the stream can be
    walked any number of times and always yields the same rows.
    """

    def __init__(
        self,
        pages: Iterable[Sequence[Token]],
        settings: Optional[ReconstructionConfig] = None,
    ) -> None:
        self._pages = [list(p) for p in pages]
        self._settings = settings or ReconstructionConfig()

    def __iter__(self) -> Iterator[Row]:
        for page_tokens in self._pages:
            yield from group_rows(page_tokens, self._settings)

    @property
    def page_count(self) -> int:
        return len(self._pages)


def rows_from_text(
    text: str,
    profile: LayoutProfile,
    settings: Optional[ReconstructionConfig] = None,
) -> List[Row]:
    """Degraded input mode: one text line becomes one row.

    Form feeds separate pages.  Fragments get their index in the line as
    ``x`` and the negated line number as ``y`` so row order is line order.
    """
    if settings is None:
        settings = ReconstructionConfig()

    rows: List[Row] = []
    line_no = 0
    for page_idx, page_text in enumerate(text.split("\f"), start=1):
        for line in page_text.splitlines():
            line_no += 1
            fragments = split_text_line(line, profile, settings)
            if not fragments:
                continue
            y = float(-line_no)
            tokens = [
                Token(text=frag, x=float(i), y=y, page=page_idx)
                for i, frag in enumerate(fragments)
            ]
            rows.append(Row(page=page_idx, y=y, tokens=tokens))
    return rows


def drop_noise(rows: Iterable[Row], profile: LayoutProfile) -> Iterator[Row]:
    """Remove column-header and page-header literals before segmentation.

    Whole rows matching a page-header pattern go; in other rows only the
    literal tokens go.  Rows left empty are dropped.
    """
    dropped = 0
    for row in rows:
        if profile.is_page_header(row.text()):
            dropped += 1
            continue
        kept = [t for t in row.tokens if not is_noise_literal(t.text, profile)]
        if not kept:
            dropped += 1
            continue
        if len(kept) != len(row.tokens):
            row = Row(page=row.page, y=row.y, tokens=kept)
        yield row
    if dropped:
        log.debug("dropped %d header/noise rows", dropped)
