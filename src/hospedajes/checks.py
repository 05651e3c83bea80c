"""Document-level checks over the records of one run.

Each check receives the full record sequence and returns a list of
:class:`~hospedajes.models.Diagnostic` findings.  Section-level problems
are reported by the pipeline while sections are processed; these checks
look across sections.

Usage::

    from hospedajes.checks import run_document_checks
    findings = run_document_checks(records)
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

from .models import Diagnostic, Record
from .profile import fold_text

# ── Individual checks ────────────────────────────────────────────────


def check_duplicate_records(records: Sequence[Record]) -> List[Diagnostic]:
    """Flag names listed more than once in the same region."""
    findings: List[Diagnostic] = []
    seen: Dict[Tuple[str, str], List[Record]] = {}
    for rec in records:
        key = (fold_text(rec.name), fold_text(rec.region))
        seen.setdefault(key, []).append(rec)

    for dupes in seen.values():
        if len(dupes) < 2:
            continue
        first = dupes[0]
        findings.append(
            Diagnostic(
                check_id="DOC_DUPLICATE_RECORD",
                severity="info",
                message=(
                    f"'{first.name}' listed {len(dupes)} times in "
                    f"'{first.region or '-'}'"
                ),
                section=first.region,
                details={
                    "name": first.name,
                    "categories": [d.category for d in dupes],
                },
            )
        )
    return findings


def check_missing_contact(records: Sequence[Record]) -> List[Diagnostic]:
    """Count records carrying neither an email nor a phone."""
    missing = [r.name for r in records if not r.email and not r.phone]
    if not missing:
        return []
    return [
        Diagnostic(
            check_id="DOC_NO_CONTACT",
            severity="info",
            message=f"{len(missing)} of {len(records)} records have no email or phone",
            details={"count": len(missing), "names": missing[:20]},
        )
    ]


# ── Orchestrator ─────────────────────────────────────────────────────


def run_document_checks(records: Sequence[Record]) -> List[Diagnostic]:
    """Run all document checks and return the combined findings."""
    if not records:
        return []
    findings: List[Diagnostic] = []
    findings.extend(check_duplicate_records(records))
    findings.extend(check_missing_contact(records))
    return findings
