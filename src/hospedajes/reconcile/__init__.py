"""Column reconciliation — fallback for sections without usable rows.

Public API
----------
- :func:`reconcile_columns` — rebuild raw records from four field streams
- :func:`build_field_streams` — classify a section into :class:`FieldStreams`
- :func:`is_degenerate` — whether a section's rows are column streams
"""

from .columns import (
    FieldStreams,
    align_names,
    build_field_streams,
    is_degenerate,
    multi_field_row_ratio,
    place_emails,
    reconcile_columns,
    reference_count,
)

__all__ = [
    "FieldStreams",
    "align_names",
    "build_field_streams",
    "is_degenerate",
    "multi_field_row_ratio",
    "place_emails",
    "reconcile_columns",
    "reference_count",
]
