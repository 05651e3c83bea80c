"""Section segmentation: split the global row stream into per-region spans.

A section opens on a region-header row (``"<REGION> Provincia:"``) and
closes on the trailer row (``"<N> Total por provincia:"``), which also
carries the declared record count.  A new header closes an open section
implicitly, and so does the end of the stream; neither is an error here.
The pipeline turns a missing trailer into a diagnostic.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List

from .classify import is_section_trailer, parse_region_header, parse_section_trailer
from .models import Row, Section
from .profile import LayoutProfile

log = logging.getLogger(__name__)


def segment_rows(rows: Iterable[Row], profile: LayoutProfile) -> Iterator[Section]:
    """Yield :class:`Section` values in document order.

    Rows seen before the first header form a section with an empty
    region, yielded only when it holds rows.  A header immediately
    followed by its trailer yields a section with zero rows.
    """
    current_region = ""
    current_page = 0
    section_open = False
    acc: List[Row] = []

    for row in rows:
        text = row.text()

        if is_section_trailer(text, profile):
            count = parse_section_trailer(text, profile)
            if section_open or acc:
                yield Section(
                    region=current_region,
                    declared_count=count,
                    rows=acc,
                    closed_by="trailer",
                    page=current_page or row.page,
                )
            else:
                log.debug("page %d: trailer without open section ignored", row.page)
            # Region is cleared only once the section carrying it is out.
            current_region = ""
            section_open = False
            acc = []
            continue

        region = parse_region_header(text, profile)
        if region is not None:
            if section_open or acc:
                yield Section(
                    region=current_region,
                    declared_count=None,
                    rows=acc,
                    closed_by="header",
                    page=current_page or row.page,
                )
            current_region = region
            current_page = row.page
            section_open = True
            acc = []
            continue

        if not acc and not section_open:
            current_page = row.page
        acc.append(row)

    if section_open or acc:
        yield Section(
            region=current_region,
            declared_count=None,
            rows=acc,
            closed_by="end",
            page=current_page,
        )
