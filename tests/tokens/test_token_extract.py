"""Tests for hospedajes.tokens.extract — pdfplumber word extraction.

Covers:
- _build_extract_words_kwargs
- _empty_diagnostics (schema completeness)
- extract_page_tokens (mock page: flip, rotation and blank filtering)
- extract_document_tokens (mock pdfplumber.open, path and bytes input)
"""

import io
from unittest.mock import MagicMock, patch

from hospedajes.config import ReconstructionConfig
from hospedajes.tokens.extract import (
    TokenPageResult,
    _build_extract_words_kwargs,
    _empty_diagnostics,
    extract_document_tokens,
    extract_page_tokens,
)

# ── Helpers ────────────────────────────────────────────────────────────


def _word(
    text: str = "Casa Verde",
    x0: float = 40.0,
    top: float = 100.0,
    bottom: float = 110.0,
    upright: bool = True,
) -> dict:
    """Build a dict matching pdfplumber's extract_words output."""
    return {
        "text": text,
        "x0": x0,
        "x1": x0 + 50.0,
        "top": top,
        "bottom": bottom,
        "upright": upright,
    }


def _make_mock_page(words, width=612.0, height=792.0, page_number=1) -> MagicMock:
    page = MagicMock(width=width, height=height, page_number=page_number)
    page.extract_words = MagicMock(return_value=words)
    return page


def _make_mock_pdf(pages) -> MagicMock:
    mock_pdf = MagicMock()
    mock_pdf.pages = pages
    mock_pdf.__enter__ = MagicMock(return_value=mock_pdf)
    mock_pdf.__exit__ = MagicMock(return_value=False)
    return mock_pdf


# ── kwargs / diagnostics schema ────────────────────────────────────────


class TestExtractWordsKwargs:
    def test_keep_blank_chars(self):
        kw = _build_extract_words_kwargs(ReconstructionConfig())
        assert kw["keep_blank_chars"] is True
        assert kw["x_tolerance"] == 3.0
        assert kw["extra_attrs"] == ["upright"]

    def test_word_mode(self):
        kw = _build_extract_words_kwargs(ReconstructionConfig(keep_blank_chars=False))
        assert "keep_blank_chars" not in kw


class TestEmptyDiagnostics:
    def test_schema(self):
        diag = _empty_diagnostics(ReconstructionConfig())
        assert set(diag) == {
            "extraction_params",
            "tokens_raw",
            "tokens_total",
            "tokens_blank_dropped",
            "tokens_rotated_dropped",
            "error",
        }
        assert diag["extraction_params"]["normalize_unicode"] is True


# ── extract_page_tokens ────────────────────────────────────────────────


class TestExtractPageTokens:
    def test_tokens_use_bottom_left_origin(self):
        page = _make_mock_page([_word("Casa Verde", top=100.0, bottom=110.0)])
        result = extract_page_tokens(page, 4)
        assert isinstance(result, TokenPageResult)
        (tok,) = result.tokens
        assert tok.y == 682.0
        assert tok.page == 4
        assert result.page_height == 792.0

    def test_rotated_and_blank_words_dropped(self):
        words = [
            _word("Casa Verde"),
            _word("BORRADOR", upright=False),
            _word("\x00 ", x0=300.0),
        ]
        result = extract_page_tokens(_make_mock_page(words), 1)
        assert [t.text for t in result.tokens] == ["Casa Verde"]
        assert result.diagnostics["tokens_raw"] == 3
        assert result.diagnostics["tokens_rotated_dropped"] == 1
        assert result.diagnostics["tokens_blank_dropped"] == 1
        assert result.diagnostics["tokens_total"] == 1

    def test_blank_page(self):
        result = extract_page_tokens(_make_mock_page([]), 1)
        assert result.tokens == []
        assert result.diagnostics["tokens_total"] == 0

    def test_extract_words_called_with_config(self):
        page = _make_mock_page([])
        extract_page_tokens(page, 1, ReconstructionConfig(x_tolerance=1.5))
        kwargs = page.extract_words.call_args.kwargs
        assert kwargs["x_tolerance"] == 1.5


# ── extract_document_tokens ────────────────────────────────────────────


class TestExtractDocumentTokens:
    def test_pages_in_order(self, tmp_path):
        pages = [
            _make_mock_page([_word("Chiriquí Provincia:")], page_number=1),
            _make_mock_page([_word("Casa Verde"), _word("Hostal", x0=220.0)], page_number=2),
        ]
        mock_pdf = _make_mock_pdf(pages)
        with patch("hospedajes.tokens.extract.pdfplumber.open", return_value=mock_pdf) as m:
            results = extract_document_tokens(tmp_path / "reporte.pdf")

        m.assert_called_once_with(tmp_path / "reporte.pdf")
        assert [r.page for r in results] == [1, 2]
        assert [len(r.tokens) for r in results] == [1, 2]
        assert results[1].tokens[1].page == 2

    def test_bytes_wrapped_in_buffer(self):
        mock_pdf = _make_mock_pdf([_make_mock_page([])])
        with patch("hospedajes.tokens.extract.pdfplumber.open", return_value=mock_pdf) as m:
            extract_document_tokens(b"%PDF-1.7 ...")

        (handle,), _ = m.call_args
        assert isinstance(handle, io.BytesIO)
        assert handle.getvalue() == b"%PDF-1.7 ..."

    def test_failing_page_returns_empty_result(self):
        bad = _make_mock_page([], page_number=2)
        bad.extract_words.side_effect = RuntimeError("bad content stream")
        pages = [_make_mock_page([_word("Casa Verde")], page_number=1), bad]
        with patch(
            "hospedajes.tokens.extract.pdfplumber.open",
            return_value=_make_mock_pdf(pages),
        ):
            results = extract_document_tokens(b"%PDF-1.7 ...")

        assert [len(r.tokens) for r in results] == [1, 0]
        assert results[0].diagnostics["error"] is None
        assert results[1].page == 2
        assert results[1].diagnostics["error"] == "RuntimeError: bad content stream"
