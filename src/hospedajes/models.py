from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Token:
    """Smallest unit: one positioned text fragment from page-text extraction.

    ``y`` follows the PDF convention (origin bottom-left), so larger values
    are higher on the page.
    """

    text: str
    x: float
    y: float
    page: int

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "text": self.text,
            "x": round(self.x, 3),
            "y": round(self.y, 3),
            "page": self.page,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Token":
        """Reconstruct a Token from a :meth:`to_dict` payload."""
        return cls(
            text=d.get("text", ""),
            x=float(d.get("x", 0.0)),
            y=float(d.get("y", 0.0)),
            page=int(d.get("page", 0)),
        )


@dataclass
class Row:
    """Tokens sharing one vertical band on one page, left to right."""

    page: int
    y: float
    tokens: List[Token] = field(default_factory=list)

    def texts(self) -> List[str]:
        """Fragment texts in left-to-right order."""
        return [t.text for t in self.tokens if t.text]

    def text(self) -> str:
        """Fragments joined with single spaces."""
        return " ".join(self.texts()).strip()

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass
class Diagnostic:
    """A single non-fatal finding recorded while reconstructing records."""

    check_id: str  # e.g. "SECTION_COUNT_MISMATCH"
    severity: str  # "error" | "warning" | "info"
    message: str  # Human-readable description
    section: str = ""  # Region name of the section, if any
    page: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "check_id": self.check_id,
            "severity": self.severity,
            "message": self.message,
        }
        if self.section:
            d["section"] = self.section
        if self.page:
            d["page"] = self.page
        if self.details:
            d["details"] = self.details
        return d

    @property
    def is_problem(self) -> bool:
        """True for warning- and error-severity findings."""
        return self.severity in ("warning", "error")


@dataclass
class Section:
    """Rows belonging to one administrative region.

    ``declared_count`` is parsed from the trailer marker and is the
    authoritative expected record count when present.  ``closed_by`` is
    ``"trailer"``, ``"header"`` (next region started first) or ``"end"``
    (stream ran out).
    """

    region: str
    declared_count: Optional[int] = None
    rows: List[Row] = field(default_factory=list)
    closed_by: str = "trailer"
    page: int = 0

    def tokens(self) -> List[Token]:
        """All tokens of the section in row order."""
        return [t for r in self.rows for t in r.tokens]

    def summary(self) -> Dict[str, Any]:
        return {
            "region": self.region,
            "declared_count": self.declared_count,
            "rows": len(self.rows),
            "closed_by": self.closed_by,
            "page": self.page,
        }


@dataclass
class RawRecord:
    """Pre-validation field tuple for one record slot."""

    name: str = ""
    category: str = ""
    email: str = ""
    phone: str = ""

    def is_empty(self) -> bool:
        return not (self.name or self.category or self.email or self.phone)

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "category": self.category,
            "email": self.email,
            "phone": self.phone,
        }


@dataclass(frozen=True)
class Record:
    """Final lodging record; immutable once emitted."""

    name: str
    category: str
    email: str
    phone: str
    region: str
    subregion: str
    description: str
    map_url: str
    contact_channel: str
    source: str

    def to_dict(self) -> Dict[str, str]:
        """Serialize to a JSON-compatible dict."""
        return {
            "name": self.name,
            "category": self.category,
            "email": self.email,
            "phone": self.phone,
            "region": self.region,
            "subregion": self.subregion,
            "description": self.description,
            "map_url": self.map_url,
            "contact_channel": self.contact_channel,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Record":
        """Reconstruct a Record from a :meth:`to_dict` payload."""
        return cls(**{k: str(d.get(k, "")) for k in RECORD_FIELDS})


RECORD_FIELDS = (
    "name",
    "category",
    "email",
    "phone",
    "region",
    "subregion",
    "description",
    "map_url",
    "contact_channel",
    "source",
)
