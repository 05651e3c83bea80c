"""Record synthesis: clean, validate and enrich one raw record.

Field problems never drop a record: an email or phone that does not
validate is emitted empty with an info diagnostic.  Only a name that is
too short after cleaning rejects the whole record.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple
from urllib.parse import quote_plus

from .classify import EMAIL_RE
from .config import ReconstructionConfig
from .models import Diagnostic, RawRecord, Record
from .profile import LayoutProfile, fold_text

log = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_DIGITS_RE = re.compile(r"\d+")
_NAME_STRIP = " \t-–,;:|·•*"


def normalize_space(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def clean_name(text: str) -> str:
    """Collapse whitespace and trim stray punctuation at either end."""
    return normalize_space(text).strip(_NAME_STRIP)


def clean_email(text: str) -> str:
    """First strict address in *text*, lower-cased; ``""`` if none."""
    text = normalize_space(text)
    m = EMAIL_RE.search(text) or EMAIL_RE.search(text.replace(" ", ""))
    return m.group(0).lower() if m else ""


def _strip_country_code(text: str, prefix: str) -> str:
    digits = prefix.lstrip("+")
    if not digits:
        return text
    d = re.escape(digits)
    # "+507 ...", "(507) ..." and "(+507) ..."
    pattern = rf"^(?:\(\s*\+?\s*{d}\s*\)|\+\s*{d})[\s\-.]*"
    return re.sub(pattern, "", text)


def phone_numbers(text: str, cfg: Optional[ReconstructionConfig] = None) -> List[str]:
    """Digit-only numbers found in a raw phone value.

    ``/`` always separates numbers.  Within one part, digit groups are
    accumulated into a number until the next group would push it past
    ``phone_max_digits``.
    """
    cfg = cfg or ReconstructionConfig()
    text = _strip_country_code(normalize_space(text), cfg.country_prefix)
    numbers: List[str] = []
    for part in text.split("/"):
        current = ""
        for group in _DIGITS_RE.findall(part):
            if current and len(current) + len(group) > cfg.phone_max_digits:
                numbers.append(current)
                current = group
            else:
                current += group
        if current:
            numbers.append(current)
    return numbers


def clean_phone(text: str, cfg: Optional[ReconstructionConfig] = None) -> str:
    """First number with a valid local digit count; ``""`` if none."""
    cfg = cfg or ReconstructionConfig()
    for number in phone_numbers(text, cfg):
        if cfg.phone_min_digits <= len(number) <= cfg.phone_max_digits:
            return number
    return ""


def contact_channel(phone: str, cfg: Optional[ReconstructionConfig] = None) -> str:
    """Dialable number for local mobiles (``+507`` + 8 digits starting with 6)."""
    cfg = cfg or ReconstructionConfig()
    if (
        phone.isdigit()
        and len(phone) == cfg.mobile_digits
        and phone.startswith(cfg.mobile_leading_digits)
    ):
        return f"{cfg.country_prefix}{phone}"
    return ""


def map_url(name: str, region: str, cfg: Optional[ReconstructionConfig] = None) -> str:
    """Map-search link for *name* in *region*."""
    cfg = cfg or ReconstructionConfig()
    parts = [name, region]
    if cfg.country_label and fold_text(region) != fold_text(cfg.country_label):
        parts.append(cfg.country_label)
    query = " ".join(p for p in parts if p)
    return cfg.map_search_url + quote_plus(query)


def describe(
    name: str,
    category: str,
    region: str,
    subregion: str,
    profile: LayoutProfile,
) -> str:
    return normalize_space(
        profile.description_template.format(
            name=name,
            category=category,
            region=region,
            subregion=subregion,
        )
    )


def synthesize_record(
    raw: RawRecord,
    region: str,
    cfg: Optional[ReconstructionConfig] = None,
    profile: Optional[LayoutProfile] = None,
    page: int = 0,
) -> Tuple[Optional[Record], List[Diagnostic]]:
    """Turn *raw* into a :class:`Record`, or ``None`` when its name is invalid."""
    cfg = cfg or ReconstructionConfig()
    profile = profile or LayoutProfile()
    region = normalize_space(region)
    diagnostics: List[Diagnostic] = []

    name = clean_name(raw.name)
    if len(name) < cfg.min_name_length:
        diagnostics.append(
            Diagnostic(
                check_id="RECORD_NAME_INVALID",
                severity="warning",
                message=f"Record dropped: name {raw.name!r} is too short",
                section=region,
                page=page,
                details=raw.to_dict(),
            )
        )
        log.debug("dropping record with invalid name %r", raw.name)
        return None, diagnostics

    email = clean_email(raw.email)
    if raw.email.strip() and not email:
        diagnostics.append(
            Diagnostic(
                check_id="EMAIL_INVALID",
                severity="info",
                message=f"{name}: email {raw.email!r} is not a valid address",
                section=region,
                page=page,
                details={"name": name, "email": raw.email},
            )
        )

    phone = clean_phone(raw.phone, cfg)
    if raw.phone.strip() and not phone:
        diagnostics.append(
            Diagnostic(
                check_id="PHONE_INVALID",
                severity="info",
                message=f"{name}: phone {raw.phone!r} has no valid number",
                section=region,
                page=page,
                details={"name": name, "phone": raw.phone},
            )
        )

    category = normalize_space(raw.category) or cfg.default_category
    subregion = profile.subregion_for(region) if region else ""
    region_label = region or cfg.country_label

    record = Record(
        name=name,
        category=category,
        email=email,
        phone=phone,
        region=region,
        subregion=subregion,
        description=describe(
            name, category, region_label, subregion or region_label, profile
        ),
        map_url=map_url(name, region, cfg),
        contact_channel=contact_channel(phone, cfg),
        source=cfg.source_label,
    )
    return record, diagnostics
