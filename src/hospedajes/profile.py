"""Layout profile: the report layout expressed as data.

Everything that is specific to the four-column lodging report (the
category lexicon, two-fragment compound categories, column-header and
page-header literals, section markers, the region → sub-region table and
the description template) lives in :class:`LayoutProfile`.  When the
published layout drifts, a JSON file passed to :func:`load_profile`
overrides the affected keys; no code changes are needed.
"""

from __future__ import annotations

import json
import re
import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple


def fold_text(text: str) -> str:
    """Case-fold, strip accents and collapse whitespace for comparisons."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", stripped).strip().casefold()


DEFAULT_CATEGORY_TERMS: List[str] = [
    "hotel",
    "hostal",
    "albergue",
    "posada",
    "resort",
    "bungalow",
    "cabaña",
    "cabin",
    "campsite",
    "camping",
    "motel",
    "apartotel",
    "aparta-hotel",
    "ecolodge",
    "lodge",
    "sitio de acampar",
    "hostal familiar",
    "casa de huéspedes",
]

DEFAULT_COMPOUNDS: List[Tuple[str, str]] = [
    ("Hostal", "Familiar"),
    ("Sitio de", "acampar"),
    ("Casa de", "Huéspedes"),
]

DEFAULT_COLUMN_HEADERS: List[str] = [
    "Nombre",
    "Modalidad",
    "Correo Principal",
    "Teléfono",
]

DEFAULT_PAGE_HEADER_PATTERNS: List[str] = [
    r"^p[aá]gina\s*\d+\s*de\s*\d+$",
    r"^actualizado\s+al\b",
    r"^reporte\s+de\s+hospedajes",
    r"^hospedajes\s+vigentes",
    r"^autoridad\s+de\s+turismo",
]

# Province / comarca → tourism destination.
DEFAULT_SUBREGIONS: Dict[str, str] = {
    "Bocas del Toro": "Archipiélago de Bocas del Toro",
    "Chiriquí": "Tierras Altas de Chiriquí",
    "Coclé": "Riviera Pacífica",
    "Colón": "Costa Atlántica",
    "Darién": "Selva del Darién",
    "Herrera": "Península de Azuero",
    "Los Santos": "Península de Azuero",
    "Panamá": "Ciudad de Panamá",
    "Panamá Oeste": "Riviera Pacífica",
    "Veraguas": "Santa Catalina y Coiba",
    "Guna Yala": "Comarca Guna Yala",
    "Emberá": "Comarca Emberá-Wounaan",
    "Ngäbe-Buglé": "Comarca Ngäbe-Buglé",
}

DEFAULT_DESCRIPTION_TEMPLATE = (
    "{category} {name}, ubicado en {subregion}, provincia de {region}. "
    "Hospedaje registrado ante la Autoridad de Turismo de Panamá."
)


@dataclass
class LayoutProfile:
    """Layout data consulted by the classifier, segmenter and synthesizer."""

    category_terms: List[str] = field(
        default_factory=lambda: list(DEFAULT_CATEGORY_TERMS)
    )
    compounds: List[Tuple[str, str]] = field(
        default_factory=lambda: list(DEFAULT_COMPOUNDS)
    )
    column_headers: List[str] = field(
        default_factory=lambda: list(DEFAULT_COLUMN_HEADERS)
    )
    page_header_patterns: List[str] = field(
        default_factory=lambda: list(DEFAULT_PAGE_HEADER_PATTERNS)
    )
    region_marker: str = "Provincia:"
    trailer_marker: str = "Total por provincia:"
    subregions: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SUBREGIONS)
    )
    description_template: str = DEFAULT_DESCRIPTION_TEMPLATE

    def __post_init__(self) -> None:
        self.compounds = [(str(h), str(t)) for h, t in self.compounds]
        self._terms = [fold_text(t) for t in self.category_terms if t.strip()]
        self._heads = {fold_text(h): fold_text(t) for h, t in self.compounds}
        self._tails = {fold_text(t) for _, t in self.compounds}
        self._exact = set(self._terms) | set(self._heads) | self._tails
        self._exact |= {fold_text(f"{h} {t}") for h, t in self.compounds}
        self._headers = {fold_text(h) for h in self.column_headers}
        self._page_headers: List[Pattern[str]] = [
            re.compile(p, re.IGNORECASE) for p in self.page_header_patterns
        ]
        self._subregions = {fold_text(k): v for k, v in self.subregions.items()}

    # ── Lexicon lookups ───────────────────────────────────────────────

    def contains_category_term(self, text: str) -> bool:
        """Case-insensitive containment of any lexicon term."""
        folded = fold_text(text)
        if not folded:
            return False
        return any(term in folded for term in self._terms) or folded in self._exact

    def is_exact_category(self, text: str) -> bool:
        """Text is exactly a lexicon term, a compound half or a compound."""
        return fold_text(text) in self._exact

    def compound_tail_for(self, head: str) -> Optional[str]:
        """Folded second half expected after *head*, if *head* opens a compound."""
        return self._heads.get(fold_text(head))

    def completes_compound(self, head: str, tail: str) -> bool:
        expected = self.compound_tail_for(head)
        return expected is not None and expected == fold_text(tail)

    def longest_trailing_category(self, text: str) -> Optional[str]:
        """Longest exact category term ending *text* (original casing)."""
        folded = fold_text(text)
        best: Optional[str] = None
        for term in self._exact:
            if not (folded == term or folded.endswith(" " + term)):
                continue
            if best is None or len(term) > len(best):
                best = term
        if best is None:
            return None
        words = text.split()
        n = len(best.split())
        return " ".join(words[-n:]) if len(words) >= n else None

    # ── Noise lookups ─────────────────────────────────────────────────

    def is_column_header(self, text: str) -> bool:
        return fold_text(text) in self._headers

    def is_page_header(self, text: str) -> bool:
        stripped = re.sub(r"\s+", " ", text or "").strip()
        return any(p.search(stripped) for p in self._page_headers)

    # ── Region data ───────────────────────────────────────────────────

    def subregion_for(self, region: str) -> str:
        """Tourism sub-region for *region*; the region itself when unmapped."""
        return self._subregions.get(fold_text(region), region)

    # ── Serialisation ─────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "category_terms": list(self.category_terms),
            "compounds": [list(c) for c in self.compounds],
            "column_headers": list(self.column_headers),
            "page_header_patterns": list(self.page_header_patterns),
            "region_marker": self.region_marker,
            "trailer_marker": self.trailer_marker,
            "subregions": dict(self.subregions),
            "description_template": self.description_template,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "LayoutProfile":
        """Build a profile from *d*; missing keys keep their defaults."""
        known = set(cls().to_dict())
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"Unknown layout profile keys: {sorted(unknown)}")
        kwargs = dict(d)
        if "compounds" in kwargs:
            kwargs["compounds"] = [tuple(c) for c in kwargs["compounds"]]
        return cls(**kwargs)


def load_profile(path: Path | str) -> LayoutProfile:
    """Load a :class:`LayoutProfile` override file (JSON)."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Layout profile must be a JSON object: {path}")
    return LayoutProfile.from_dict(data)
