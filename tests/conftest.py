"""Shared test fixtures for the lodging-report reconstruction engine."""

import pytest

from hospedajes.config import ReconstructionConfig
from hospedajes.models import Record, Row, Section, Token
from hospedajes.profile import LayoutProfile

# ── Helpers ────────────────────────────────────────────────────────────

# Left edge of each report column, in points.
COL_X = {"name": 40.0, "category": 220.0, "email": 320.0, "phone": 480.0}


def make_token(text: str, x: float = 0.0, y: float = 0.0, page: int = 1) -> Token:
    """Create a Token with sane defaults."""
    return Token(text=text, x=x, y=y, page=page)


def make_row(
    name: str = "",
    category: str = "",
    email: str = "",
    phone: str = "",
    y: float = 700.0,
    page: int = 1,
) -> Row:
    """Build a report row with one token per non-empty column."""
    cells = {"name": name, "category": category, "email": email, "phone": phone}
    tokens = [
        make_token(text, COL_X[col], y, page) for col, text in cells.items() if text
    ]
    return Row(page=page, y=y, tokens=tokens)


def text_row(*texts: str, y: float = 700.0, page: int = 1) -> Row:
    """Build a row from free fragments placed left to right."""
    tokens = [make_token(t, 40.0 + 100.0 * i, y, page) for i, t in enumerate(texts)]
    return Row(page=page, y=y, tokens=tokens)


def header(region: str) -> str:
    return f"{region} Provincia:"


def trailer(count: int) -> str:
    return f"{count} Total por provincia:"


def report_page(
    lines: list,
    page: int = 1,
    top: float = 760.0,
    step: float = 14.0,
) -> list[Token]:
    """Lay out report lines as positioned tokens, top to bottom.

    Each line is either a string (one fragment in the name column, used
    for headers, trailers and titles) or a dict of column → text.
    """
    tokens: list[Token] = []
    y = top
    for line in lines:
        if isinstance(line, str):
            tokens.append(make_token(line, COL_X["name"], y, page))
        else:
            for col, text in line.items():
                tokens.append(make_token(text, COL_X[col], y, page))
        y -= step
    return tokens


def make_section(rows: list[Row], region: str = "Chiriquí", declared=None) -> Section:
    return Section(region=region, declared_count=declared, rows=rows, page=1)


def make_record(
    name: str = "Casa Verde",
    category: str = "Hostal",
    email: str = "",
    phone: str = "",
    region: str = "Chiriquí",
    **overrides,
) -> Record:
    """Create a final Record; derived fields default to simple values."""
    fields = {
        "name": name,
        "category": category,
        "email": email,
        "phone": phone,
        "region": region,
        "subregion": region,
        "description": f"{category} {name}, provincia de {region}.",
        "map_url": "",
        "contact_channel": "",
        "source": "ATP",
    }
    fields.update(overrides)
    return Record(**fields)


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def default_cfg() -> ReconstructionConfig:
    """Return a default ReconstructionConfig."""
    return ReconstructionConfig()


@pytest.fixture
def profile() -> LayoutProfile:
    """Return the built-in layout profile."""
    return LayoutProfile()


@pytest.fixture
def chiriqui_page() -> list[Token]:
    """One page: titles, column headers, one region with two records."""
    return report_page(
        [
            "REPORTE DE HOSPEDAJES VIGENTES",
            {
                "name": "Nombre",
                "category": "Modalidad",
                "email": "Correo Principal",
                "phone": "Teléfono",
            },
            header("Chiriquí"),
            {
                "name": "Casa Verde",
                "category": "Hostal",
                "email": "info@casaverde.com",
                "phone": "6123-4567",
            },
            {
                "name": "Posada del Sol",
                "category": "Posada",
                "email": "reservas@posadadelsol.com",
                "phone": "775-1234",
            },
            trailer(2),
        ]
    )
