"""Immutable record snapshot for the serving layer.

The serving layer holds exactly one current :class:`Snapshot` and swaps
it for the value returned by :func:`next_snapshot` after each refresh.
A refresh that produced nothing (no input, or zero records) keeps the
previous records and marks the snapshot stale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .models import Diagnostic, Record
from .pipeline import ExtractionResult, ExtractionStatus

log = logging.getLogger(__name__)

INITIAL_STATUS = "No PDF processed yet"


@dataclass(frozen=True)
class Snapshot:
    """Current record set plus when and how it was produced."""

    records: Tuple[Record, ...] = ()
    status: str = INITIAL_STATUS
    updated_at: Optional[datetime] = None
    diagnostics: Tuple[Diagnostic, ...] = ()
    stale: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "stale": self.stale,
            "records": len(self.records),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def initial_snapshot() -> Snapshot:
    return Snapshot()


def next_snapshot(
    current: Snapshot,
    result: ExtractionResult,
    now: Optional[datetime] = None,
) -> Snapshot:
    """Snapshot to publish after *result*; *current* is never modified.

    ``no_input`` and ``no_records`` keep ``current.records`` (and its
    ``updated_at``) and set ``stale``; ``partial`` and ``ok`` replace the
    records wholesale.
    """
    now = now or datetime.now(timezone.utc)
    diagnostics = tuple(result.all_diagnostics())

    if result.status in (ExtractionStatus.NO_INPUT, ExtractionStatus.NO_RECORDS):
        log.warning(
            "refresh produced no records (%s); keeping %d previous records",
            result.status_message,
            len(current.records),
        )
        return replace(
            current,
            status=result.status_message,
            diagnostics=diagnostics,
            stale=True,
        )

    return Snapshot(
        records=tuple(result.records),
        status=result.status_message,
        updated_at=now,
        diagnostics=diagnostics,
        stale=False,
    )
