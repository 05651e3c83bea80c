"""Continuation resolution: stitch rows into raw records.

The resolver is a two-state machine fed one row at a time::

    AWAITING_RECORD ──row──▶ RECORD_OPEN ──continuation row──▶ RECORD_OPEN
                                  │
                                  └──new-record row──▶ emit, RECORD_OPEN

A row continues the open record when any enabled rule in
:class:`ContinuationRules` fires:

(a) ``compound``     open category is the first half of a compound
                     (``"Hostal"``) and the row's category is its second
                     half (``"Familiar"``)
(b) ``no_category``  the row carries no category at all
(c) ``email``        the open email is incomplete and the row carries an
                     email fragment
(d) ``phone``        the open phone ends in ``-`` or ``/`` and the row
                     carries a phone fragment
(e) ``orphan_category``  the open record has no category yet (off by
                     default)

Anything else opens a new record.  Category is the primary delimiter:
every true record has exactly one category cell.  When (c) or (d) fires
on a row that also carries a category, only the email/phone tail is
attached to the open record and the rest of the row opens the next one.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from functools import reduce
from typing import Dict, Iterable, List, Optional, Tuple

from .classify import (
    FIELD_ROLES,
    FragmentRole,
    classify_fragment,
    is_complete_email,
    phone_continues,
)
from .config import ReconstructionConfig
from .models import RawRecord, Row
from .profile import LayoutProfile

log = logging.getLogger(__name__)


class ResolverState(str, Enum):
    AWAITING_RECORD = "awaiting_record"
    RECORD_OPEN = "record_open"


@dataclass
class ContinuationRules:
    """Which continuation rules are active; layout tie-breaks as data."""

    compound_categories: bool = True
    missing_category: bool = True
    split_email: bool = True
    split_phone: bool = True
    adopt_orphan_category: bool = False
    # Attach an email/phone tail to the open record and open a new record
    # with the rest of a row that also carries a category.
    split_mixed_rows: bool = True


@dataclass
class RowFields:
    """Per-role text of one row after same-role fragments are merged."""

    name: str = ""
    category: str = ""
    email: str = ""
    phone: str = ""
    roles: List[FragmentRole] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.name or self.category or self.email or self.phone)

    def field_count(self) -> int:
        return sum(1 for v in (self.name, self.category, self.email, self.phone) if v)


# ── Field merge helpers ──────────────────────────────────────────────


def _join(a: str, b: str) -> str:
    return " ".join(p for p in (a.strip(), b.strip()) if p)


def email_continues(open_email: str, fragment: str) -> bool:
    """*fragment* completes *open_email* rather than starting a new address."""
    if not open_email or not fragment or is_complete_email(open_email):
        return False
    return "@" not in open_email or "@" not in fragment


def merge_email(a: str, b: str) -> str:
    """Join email fragments; never space-join parts of one address."""
    a = re.sub(r"\s+", "", a or "")
    b = re.sub(r"\s+", "", b or "")
    if not a or not b:
        return a or b
    if email_continues(a, b):
        return a + b
    return f"{a} {b}"


def merge_phone(a: str, b: str) -> str:
    """Join phone fragments.

    A trailing hyphen is dropped and the digits abut; a trailing slash
    becomes a space, separating a second number for the same record.
    """
    a = (a or "").strip()
    b = (b or "").strip()
    if not a or not b:
        return a or b
    if a.endswith("-"):
        return a[:-1] + b
    if a.endswith("/"):
        return f"{a[:-1].rstrip()} {b}"
    return f"{a} {b}"


def label_row(
    row: Row,
    profile: LayoutProfile,
    cfg: ReconstructionConfig | None = None,
) -> List[Tuple[str, FragmentRole]]:
    """Field-role labels for a row's fragments, left to right.

    Noise and marker fragments are left out.  When the row holds an
    exact category term, any other category-shaped fragment in it
    (``"Hotel Las Palmas"``) is a name.
    """
    min_len = cfg.min_name_candidate_length if cfg else 3
    labelled = []
    for tok in row.tokens:
        role = classify_fragment(tok.text, profile, min_len)
        if role in FIELD_ROLES:
            labelled.append((tok.text.strip(), role))

    exact = {
        i
        for i, (text, role) in enumerate(labelled)
        if role is FragmentRole.CATEGORY and profile.is_exact_category(text)
    }
    if exact:
        labelled = [
            (text, FragmentRole.NAME)
            if role is FragmentRole.CATEGORY and i not in exact
            else (text, role)
            for i, (text, role) in enumerate(labelled)
        ]
    return labelled


def row_fields(
    row: Row,
    profile: LayoutProfile,
    cfg: ReconstructionConfig | None = None,
) -> RowFields:
    """Classify a row's fragments and merge them per role."""
    labelled = label_row(row, profile, cfg)

    parts: Dict[FragmentRole, List[str]] = {r: [] for r in FIELD_ROLES}
    for text, role in labelled:
        parts[role].append(text)

    return RowFields(
        name=" ".join(parts[FragmentRole.NAME]),
        category=" ".join(parts[FragmentRole.CATEGORY]),
        email=reduce(merge_email, parts[FragmentRole.EMAIL], ""),
        phone=reduce(merge_phone, parts[FragmentRole.PHONE], ""),
        roles=[role for _, role in labelled],
    )


# ── Resolver ─────────────────────────────────────────────────────────


class ContinuationResolver:
    """Row-by-row record stitching for one section at a time.

    Use :meth:`resolve` for a whole section, or :meth:`feed` /
    :meth:`finish` to drive it incrementally.  :attr:`rule_counts`
    records how often each continuation rule fired since the last reset.
    """

    def __init__(
        self,
        profile: Optional[LayoutProfile] = None,
        cfg: Optional[ReconstructionConfig] = None,
        rules: Optional[ContinuationRules] = None,
    ) -> None:
        self.profile = profile or LayoutProfile()
        self.cfg = cfg or ReconstructionConfig()
        self.rules = rules or ContinuationRules()
        self._open: Optional[RawRecord] = None
        self.rule_counts: Counter = Counter()

    @property
    def state(self) -> ResolverState:
        if self._open is None:
            return ResolverState.AWAITING_RECORD
        return ResolverState.RECORD_OPEN

    @property
    def open_record(self) -> Optional[RawRecord]:
        return self._open

    def reset(self) -> None:
        self._open = None
        self.rule_counts = Counter()

    def continuation_rule(self, open_rec: RawRecord, f: RowFields) -> Optional[str]:
        """Name of the first rule making *f* a continuation, else ``None``."""
        rules = self.rules
        if (
            rules.compound_categories
            and f.category
            and open_rec.category
            and self.profile.completes_compound(open_rec.category, f.category)
        ):
            return "compound"
        if rules.missing_category and not f.category:
            return "no_category"
        if rules.split_email and f.email and email_continues(open_rec.email, f.email):
            return "email"
        if (
            rules.split_phone
            and f.phone
            and open_rec.phone
            and phone_continues(open_rec.phone)
        ):
            return "phone"
        if rules.adopt_orphan_category and not open_rec.category:
            return "orphan_category"
        return None

    def feed(self, row: Row) -> List[RawRecord]:
        """Consume one row; return the records it caused to be emitted."""
        f = row_fields(row, self.profile, self.cfg)
        if f.is_empty():
            return []

        if self._open is None:
            self._open = RawRecord(f.name, f.category, f.email, f.phone)
            return []

        rule = self.continuation_rule(self._open, f)
        if rule is None:
            emitted = self._open
            self._open = RawRecord(f.name, f.category, f.email, f.phone)
            return [emitted]

        self.rule_counts[rule] += 1
        if rule in ("email", "phone") and f.category and self.rules.split_mixed_rows:
            return self._split_row(rule, f)

        self._merge(self._open, f)
        return []

    def finish(self) -> List[RawRecord]:
        """Flush the open record at section end."""
        if self._open is None:
            return []
        emitted = self._open
        self._open = None
        return [emitted]

    def resolve(self, rows: Iterable[Row]) -> List[RawRecord]:
        """Stitch a whole section's rows into raw records."""
        self.reset()
        out: List[RawRecord] = []
        for row in rows:
            out.extend(self.feed(row))
        out.extend(self.finish())
        if self.rule_counts:
            log.debug("continuation rules fired: %s", dict(self.rule_counts))
        return out

    # ── internals ────────────────────────────────────────────────────

    def _merge(self, rec: RawRecord, f: RowFields) -> None:
        rec.name = _join(rec.name, f.name)
        rec.category = _join(rec.category, f.category)
        rec.email = merge_email(rec.email, f.email)
        rec.phone = merge_phone(rec.phone, f.phone)

    def _split_row(self, rule: str, f: RowFields) -> List[RawRecord]:
        emitted = self._open
        if rule == "email":
            emitted.email = merge_email(emitted.email, f.email)
            self._open = RawRecord(f.name, f.category, "", f.phone)
        else:
            emitted.phone = merge_phone(emitted.phone, f.phone)
            self._open = RawRecord(f.name, f.category, f.email, "")
        return [emitted]
