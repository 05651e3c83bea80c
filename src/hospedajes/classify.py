"""Lexical classification of text fragments.

Pure functions over one fragment of text.  Each fragment is labelled with
a :class:`FragmentRole`; the row-level stages decide what to do with the
labels.  Precedence when several predicates match:

    noise literal → section trailer → region header → email → phone
    → category → name → noise

Usage::

    from hospedajes.classify import classify_fragment
    role = classify_fragment("Hostal Familiar", profile)
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional

from .profile import LayoutProfile, fold_text

# Strict address: local@domain.tld with a >= 2 letter suffix.
EMAIL_RE = re.compile(
    r"[A-Za-z0-9._%+\-]+@[A-Za-z0-9\-]+(?:\.[A-Za-z0-9\-]+)*\.[A-Za-z]{2,}"
)
# Domain tail left behind when an address is split after the "@".
_DOMAIN_TAIL_RE = re.compile(r"[A-Za-z0-9._%+\-]*\.[A-Za-z]{2,}")
# 3-4 digit groups repeated 2-3 times, optionally separated.
PHONE_RE = re.compile(r"\d{3,4}(?:[ \-/]?\d{3,4}){1,2}")
_BARE_PHONE_RE = re.compile(r"\d{7,8}")
_PHONE_FRAGMENT_RE = re.compile(r"[\d\s\-/().+]+")
_INT_RE = re.compile(r"\d+")


class FragmentRole(str, Enum):
    """Role a fragment plays in the four-column layout."""

    NAME = "name"
    CATEGORY = "category"
    EMAIL = "email"
    PHONE = "phone"
    REGION_HEADER = "region_header"
    SECTION_TRAILER = "section_trailer"
    NOISE = "noise"


FIELD_ROLES = (
    FragmentRole.NAME,
    FragmentRole.CATEGORY,
    FragmentRole.EMAIL,
    FragmentRole.PHONE,
)


def _compact(text: str) -> str:
    return re.sub(r"\s+", "", text or "")


# ── Section markers ──────────────────────────────────────────────────


def is_section_trailer(text: str, profile: LayoutProfile) -> bool:
    """Fragment carries the per-region total marker."""
    return fold_text(profile.trailer_marker) in fold_text(text)


def parse_section_trailer(text: str, profile: LayoutProfile) -> Optional[int]:
    """Declared record count from a trailer fragment, if it has one.

    Accepts both ``"25Total por provincia:"`` and
    ``"Total por provincia: 25"``.
    """
    if not is_section_trailer(text, profile):
        return None
    folded = fold_text(text)
    rest = folded.replace(fold_text(profile.trailer_marker), " ")
    m = _INT_RE.search(rest)
    return int(m.group(0)) if m else None


def parse_region_header(text: str, profile: LayoutProfile) -> Optional[str]:
    """Region name from a header fragment, or ``None`` if not a header.

    The marker is matched case-sensitively so the lower-case
    ``"provincia:"`` inside the trailer never reads as a header.
    """
    if not text or profile.region_marker not in text:
        return None
    if is_section_trailer(text, profile):
        return None
    region = text.replace(profile.region_marker, " ")
    region = re.sub(r"\s+", " ", region).strip(" :-\t")
    return region


# ── Contact fields ───────────────────────────────────────────────────


def is_email_candidate(text: str) -> bool:
    """Fragment looks like (part of) an address: contains ``@``."""
    return "@" in (text or "")


def is_complete_email(text: str) -> bool:
    """Whole fragment, whitespace removed, is a strict address."""
    return EMAIL_RE.fullmatch(_compact(text)) is not None


def is_email_fragment(text: str) -> bool:
    """Address or the domain tail of a split address (``hotel.com``)."""
    if is_email_candidate(text):
        return True
    stripped = (text or "").strip()
    if not stripped or " " in stripped:
        return False
    return _DOMAIN_TAIL_RE.fullmatch(stripped) is not None


def is_phone_candidate(text: str) -> bool:
    """Digit-grouped phone number or a bare 7-8 digit run."""
    stripped = (text or "").strip()
    return (
        PHONE_RE.fullmatch(stripped) is not None
        or _BARE_PHONE_RE.fullmatch(stripped) is not None
    )


def is_phone_fragment(text: str) -> bool:
    """Digits and separators only, with at least three digits.

    Covers split numbers such as ``"6123-"`` and ``"4567"``.
    """
    stripped = (text or "").strip()
    if not stripped or _PHONE_FRAGMENT_RE.fullmatch(stripped) is None:
        return False
    return sum(c.isdigit() for c in stripped) >= 3


def phone_continues(text: str) -> bool:
    """A phone value ending in ``-`` or ``/`` expects more digits."""
    return (text or "").rstrip().endswith(("-", "/"))


# ── Name / category ──────────────────────────────────────────────────


def is_category_candidate(text: str, profile: LayoutProfile) -> bool:
    return profile.contains_category_term(text)


def is_noise_literal(text: str, profile: LayoutProfile) -> bool:
    """Column-header or page-header literal."""
    return profile.is_column_header(text) or profile.is_page_header(text)


def is_name_candidate(
    text: str, profile: LayoutProfile, min_length: int = 3
) -> bool:
    stripped = (text or "").strip()
    if len(stripped) <= min_length:
        return False
    if is_noise_literal(stripped, profile):
        return False
    if is_email_fragment(stripped) or is_phone_fragment(stripped):
        return False
    return not is_category_candidate(stripped, profile)


def classify_fragment(
    text: str, profile: LayoutProfile, min_name_length: int = 3
) -> FragmentRole:
    """Label one fragment with its :class:`FragmentRole`."""
    stripped = (text or "").strip()
    if not stripped or is_noise_literal(stripped, profile):
        return FragmentRole.NOISE
    if is_section_trailer(stripped, profile):
        return FragmentRole.SECTION_TRAILER
    if parse_region_header(stripped, profile) is not None:
        return FragmentRole.REGION_HEADER
    if is_email_fragment(stripped):
        return FragmentRole.EMAIL
    if is_phone_candidate(stripped) or is_phone_fragment(stripped):
        return FragmentRole.PHONE
    if is_category_candidate(stripped, profile):
        return FragmentRole.CATEGORY
    if is_name_candidate(stripped, profile, min_name_length):
        return FragmentRole.NAME
    return FragmentRole.NOISE
