"""Column reconciliation for sections whose rows carry no structure.

Some extraction modes return the four columns as independent streams
(every name, then every category, ...) instead of aligned rows.  Row
stitching cannot recover records from that, so this pass rebuilds them
column-wise:

1. Classify every fragment of the section in order into four
   :class:`FieldStreams`, stitching split emails, split phones and
   compound categories inside each stream.
2. Take the category count as the reference record count; a declared
   trailer count wins when present, and a disagreement is reported.
3. Merge adjacent short names until the name stream fits the reference.
4. Place each email next to the name its local part resembles, within a
   small forward window; otherwise in the nearest free slot.
5. Fill phones and categories positionally.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..classify import (
    FragmentRole,
    is_category_candidate,
    is_email_fragment,
    is_phone_fragment,
    phone_continues,
)
from ..config import ReconstructionConfig
from ..models import Diagnostic, RawRecord, Section
from ..profile import LayoutProfile, fold_text
from ..stitch import email_continues, label_row, merge_email, merge_phone, row_fields

log = logging.getLogger(__name__)


@dataclass
class FieldStreams:
    """Per-role values of one section, in section order."""

    names: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)

    def counts(self) -> dict:
        return {
            "names": len(self.names),
            "categories": len(self.categories),
            "emails": len(self.emails),
            "phones": len(self.phones),
        }


# ── Degeneracy test ──────────────────────────────────────────────────


def multi_field_row_ratio(
    section: Section, profile: LayoutProfile, cfg: ReconstructionConfig
) -> Optional[float]:
    """Share of field-bearing rows that carry two or more field roles.

    ``None`` when the section has no field-bearing rows.
    """
    counts = [row_fields(r, profile, cfg).field_count() for r in section.rows]
    counts = [c for c in counts if c]
    if not counts:
        return None
    return sum(1 for c in counts if c >= 2) / len(counts)


def is_degenerate(
    section: Section, profile: LayoutProfile, cfg: ReconstructionConfig
) -> bool:
    """Rows are single-field column streams rather than record rows."""
    ratio = multi_field_row_ratio(section, profile, cfg)
    return ratio is not None and ratio < cfg.min_multi_field_row_ratio


# ── Stream building ──────────────────────────────────────────────────


def _stitch_stream(values: List[str], joinable, join) -> List[str]:
    out: List[str] = []
    for value in values:
        if out and joinable(out[-1], value):
            out[-1] = join(out[-1], value)
        else:
            out.append(value)
    return out


def build_field_streams(
    section: Section,
    profile: LayoutProfile,
    cfg: Optional[ReconstructionConfig] = None,
) -> FieldStreams:
    """Classify every fragment of *section* into four stitched streams."""
    streams = FieldStreams()
    buckets = {
        FragmentRole.NAME: streams.names,
        FragmentRole.CATEGORY: streams.categories,
        FragmentRole.EMAIL: streams.emails,
        FragmentRole.PHONE: streams.phones,
    }
    for row in section.rows:
        for text, role in label_row(row, profile, cfg):
            buckets[role].append(text)

    streams.emails = _stitch_stream(
        [re.sub(r"\s+", "", e) for e in streams.emails],
        email_continues,
        merge_email,
    )
    streams.phones = _stitch_stream(
        streams.phones,
        lambda a, b: phone_continues(a),
        merge_phone,
    )
    streams.categories = _stitch_stream(
        streams.categories,
        profile.completes_compound,
        lambda a, b: f"{a} {b}",
    )
    return streams


def reference_count(streams: FieldStreams, declared: Optional[int]) -> int:
    """Number of record slots: the declared count, else the category count."""
    if declared is not None:
        return declared
    return len(streams.categories)


# ── Alignment ────────────────────────────────────────────────────────


def _fit(values: List[str], count: int) -> List[str]:
    return (values + [""] * count)[:count]


def align_names(
    names: List[str],
    count: int,
    profile: LayoutProfile,
    max_length: int = 20,
) -> List[str]:
    """Merge split names until the stream holds at most *count* entries.

    Repeatedly joins the first adjacent pair where both parts are shorter
    than *max_length* and the second is not category-, email- or
    phone-shaped.  Whatever still does not fit is truncated; a short
    stream is blank-padded.
    """
    names = list(names)
    while len(names) > count:
        for i in range(len(names) - 1):
            a, b = names[i], names[i + 1]
            if len(a) >= max_length or len(b) >= max_length:
                continue
            if (
                is_category_candidate(b, profile)
                or is_email_fragment(b)
                or is_phone_fragment(b)
            ):
                continue
            names[i : i + 2] = [f"{a} {b}"]
            break
        else:
            break
    return _fit(names, count)


def _alnum_fold(text: str) -> str:
    return re.sub(r"[^0-9a-z]", "", fold_text(text))


def place_emails(
    emails: List[str],
    names: List[str],
    cfg: ReconstructionConfig,
    section: str = "",
) -> Tuple[List[str], List[Diagnostic]]:
    """Assign emails to name slots.

    An email goes to the first free slot in ``cursor .. cursor + window``
    whose name contains the first ``email_match_prefix`` characters of
    the email's local part; otherwise to the nearest free slot at or
    after the cursor, then before it.  Emails with no free slot left are
    dropped with an ``EMAIL_UNPLACED`` diagnostic.
    """
    count = len(names)
    slots = [""] * count
    folded_names = [_alnum_fold(n) for n in names]
    diagnostics: List[Diagnostic] = []
    cursor = 0

    for email in emails:
        local = _alnum_fold(email.split("@", 1)[0])[: cfg.email_match_prefix]
        target: Optional[int] = None

        if local:
            stop = min(count, cursor + cfg.email_match_window + 1)
            for j in range(cursor, stop):
                if not slots[j] and local in folded_names[j]:
                    target = j
                    break

        if target is None:
            free = [j for j in range(count) if not slots[j]]
            after = [j for j in free if j >= cursor]
            if after:
                target = after[0]
            elif free:
                target = free[-1]

        if target is None:
            diagnostics.append(
                Diagnostic(
                    check_id="EMAIL_UNPLACED",
                    severity="warning",
                    message=f"No free record slot for email {email!r}",
                    section=section,
                    details={"email": email},
                )
            )
            continue

        slots[target] = email
        cursor = target + 1

    return slots, diagnostics


def reconcile_columns(
    section: Section,
    profile: LayoutProfile,
    cfg: Optional[ReconstructionConfig] = None,
) -> Tuple[List[RawRecord], List[Diagnostic]]:
    """Rebuild a section's raw records from its four column streams."""
    cfg = cfg or ReconstructionConfig()
    streams = build_field_streams(section, profile, cfg)
    diagnostics: List[Diagnostic] = []

    declared = section.declared_count
    n_categories = len(streams.categories)
    if declared is not None and declared != n_categories:
        diagnostics.append(
            Diagnostic(
                check_id="COLUMN_COUNT_MISMATCH",
                severity="warning",
                message=(
                    f"Section '{section.region}': trailer declares {declared} "
                    f"records but {n_categories} categories were found; "
                    f"using the trailer count"
                ),
                section=section.region,
                page=section.page,
                details={"declared": declared, "categories": n_categories},
            )
        )

    count = reference_count(streams, declared)
    names = align_names(streams.names, count, profile, cfg.name_merge_max_length)
    emails, email_diags = place_emails(streams.emails, names, cfg, section.region)
    for d in email_diags:
        d.page = section.page
    diagnostics.extend(email_diags)

    phones = _fit(streams.phones, count)
    categories = _fit(streams.categories, count)

    log.debug(
        "section %r: column streams %s -> %d slots",
        section.region,
        streams.counts(),
        count,
    )

    records = [
        RawRecord(
            name=names[i],
            category=categories[i],
            email=emails[i],
            phone=phones[i],
        )
        for i in range(count)
    ]
    return records, diagnostics
