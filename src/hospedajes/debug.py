"""Annotated row dump for checking how a report's layout is read.

Each row is printed with its page, its ``y`` and the role assigned to
every fragment, and flagged when it is a column-header row or a dashed
rule line.  Used by ``hospedajes rows``.
"""

from __future__ import annotations

from typing import Iterable, List

from .classify import classify_fragment
from .config import ReconstructionConfig
from .models import Row
from .profile import LayoutProfile


def is_line_of_dashes(line: str) -> bool:
    """More than ten dashes making up over 70% of the line."""
    dashes = line.count("-")
    return dashes > 10 and dashes / len(line) > 0.7


def is_column_header_line(line: str, profile: LayoutProfile) -> bool:
    """Line mentions any column-header literal (case-sensitive, as printed)."""
    headers = list(profile.column_headers)
    headers += [h.upper() for h in profile.column_headers]
    return any(h in line for h in headers)


def describe_rows(
    rows: Iterable[Row],
    profile: LayoutProfile,
    cfg: ReconstructionConfig | None = None,
) -> List[dict]:
    min_len = cfg.min_name_candidate_length if cfg else 3
    out = []
    for i, row in enumerate(rows):
        text = row.text()
        flags = []
        if is_column_header_line(text, profile):
            flags.append("column_header")
        if is_line_of_dashes(text):
            flags.append("rule")
        out.append(
            {
                "index": i,
                "page": row.page,
                "y": round(row.y, 2),
                "fragments": [
                    {
                        "text": t.text,
                        "x": round(t.x, 2),
                        "role": classify_fragment(t.text, profile, min_len).value,
                    }
                    for t in row.tokens
                ],
                "flags": flags,
            }
        )
    return out


def format_rows(described: Iterable[dict]) -> str:
    lines = []
    for d in described:
        parts = " | ".join(f"{f['text']} <{f['role']}>" for f in d["fragments"])
        flags = f"  [{', '.join(d['flags'])}]" if d["flags"] else ""
        lines.append(f"{d['index']:4d} p{d['page']} y={d['y']:8.2f}  {parts}{flags}")
    return "\n".join(lines)
