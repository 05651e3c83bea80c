"""Tests for hospedajes.grouping — row clustering, text mode and noise removal."""

from conftest import make_token, text_row

from hospedajes.config import ReconstructionConfig
from hospedajes.grouping import RowStream, drop_noise, group_rows, rows_from_text


class TestGroupRows:
    def test_empty(self, default_cfg):
        assert group_rows([], default_cfg) == []

    def test_rows_top_to_bottom_tokens_left_to_right(self, default_cfg):
        tokens = [
            make_token("Hostal", x=220, y=650),
            make_token("Casa Verde", x=40, y=700.5),
            make_token("Villa Sol", x=40, y=650),
            make_token("Hotel", x=220, y=700),
        ]
        rows = group_rows(tokens, default_cfg)
        assert [r.texts() for r in rows] == [
            ["Casa Verde", "Hotel"],
            ["Villa Sol", "Hostal"],
        ]
        assert rows[0].y > rows[1].y

    def test_first_token_sets_row_key(self, default_cfg):
        tokens = [make_token("a", y=700.5), make_token("b", x=10, y=700)]
        rows = group_rows(tokens, default_cfg)
        assert len(rows) == 1
        assert rows[0].y == 700.5

    def test_single_pass_is_order_sensitive(self):
        cfg = ReconstructionConfig(row_y_tolerance=2.0)
        low, mid, high = (
            make_token("low", y=100.0),
            make_token("mid", x=10, y=101.5),
            make_token("high", x=20, y=103.0),
        )

        forward = group_rows([low, mid, high], cfg)
        assert [len(r) for r in forward] == [1, 2]
        assert forward[0].texts() == ["high"]

        backward = group_rows([high, mid, low], cfg)
        assert [len(r) for r in backward] == [2, 1]
        assert backward[1].texts() == ["low"]

    def test_same_input_same_rows(self, default_cfg):
        tokens = [make_token(str(i), x=i, y=700 - (i % 3) * 0.7) for i in range(12)]
        assert group_rows(tokens, default_cfg) == group_rows(tokens, default_cfg)


class TestRowStream:
    def test_pages_concatenated_in_order(self, default_cfg):
        page1 = [make_token("p1", y=100, page=1)]
        page2 = [make_token("p2-top", y=700, page=2), make_token("p2-low", y=50, page=2)]
        rows = list(RowStream([page1, page2], default_cfg))
        assert [r.text() for r in rows] == ["p1", "p2-top", "p2-low"]
        assert [r.page for r in rows] == [1, 2, 2]

    def test_restartable(self, default_cfg):
        stream = RowStream([[make_token("a", y=10)], [make_token("b", y=10, page=2)]])
        assert list(stream) == list(stream)
        assert stream.page_count == 2
        assert len(list(stream)) == 2


class TestRowsFromText:
    def test_one_line_one_row(self, profile):
        text = (
            "Chiriquí Provincia:\n"
            "Casa Verde  Hostal  casa@verde.com  6123-4567\n"
            "\n"
            "\fVeraguas Provincia:\n"
        )
        rows = rows_from_text(text, profile)
        assert [r.texts() for r in rows] == [
            ["Chiriquí Provincia:"],
            ["Casa Verde", "Hostal", "casa@verde.com", "6123-4567"],
            ["Veraguas Provincia:"],
        ]
        assert [r.page for r in rows] == [1, 1, 2]
        assert rows[0].y > rows[1].y > rows[2].y

    def test_single_spaced_line_is_carved(self, profile):
        rows = rows_from_text("Casa Verde Hostal Familiar info@casa.com 6123-4567", profile)
        assert rows[0].texts() == [
            "Casa Verde",
            "Hostal Familiar",
            "info@casa.com",
            "6123-4567",
        ]

    def test_pipes_split_columns(self, profile):
        rows = rows_from_text("Villa Sol | Hotel | | 775-1234", profile)
        assert rows[0].texts() == ["Villa Sol", "Hotel", "775-1234"]


class TestDropNoise:
    def test_header_and_title_rows_removed(self, profile):
        rows = [
            text_row("Nombre", "Modalidad", "Correo Principal", "Teléfono", y=740),
            text_row("Página 1 de 3", y=730),
            text_row("Casa Verde", "Hostal", y=700),
        ]
        kept = list(drop_noise(rows, profile))
        assert [r.text() for r in kept] == ["Casa Verde Hostal"]

    def test_literal_tokens_removed_from_mixed_row(self, profile):
        kept = list(drop_noise([text_row("Nombre", "Casa Verde")], profile))
        assert kept[0].texts() == ["Casa Verde"]

    def test_trailer_numbers_survive(self, profile):
        kept = list(drop_noise([text_row("3", "Total por provincia:")], profile))
        assert kept[0].text() == "3 Total por provincia:"
