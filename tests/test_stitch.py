"""Tests for hospedajes.stitch — the continuation resolver state machine."""

import pytest
from conftest import make_row, text_row

from hospedajes.classify import FragmentRole
from hospedajes.stitch import (
    ContinuationResolver,
    ContinuationRules,
    ResolverState,
    email_continues,
    label_row,
    merge_email,
    merge_phone,
    row_fields,
)


def _resolve(rows, profile, **rule_overrides):
    resolver = ContinuationResolver(profile, rules=ContinuationRules(**rule_overrides))
    return resolver.resolve(rows), resolver


# ── Field merging ──────────────────────────────────────────────────────


class TestMergeHelpers:
    def test_email_fragments_never_space_joined(self):
        assert merge_email("info@casa", "verde.com") == "info@casaverde.com"
        assert merge_email("info@ casa", "verde .com") == "info@casaverde.com"

    def test_two_complete_emails_kept_apart(self):
        assert merge_email("a@x.com", "b@y.com") == "a@x.com b@y.com"

    def test_email_continues(self):
        assert email_continues("info@casa", "verde.com")
        assert email_continues("info", "@casaverde.com")
        assert not email_continues("info@casaverde.com", "verde.com")
        assert not email_continues("", "verde.com")

    @pytest.mark.parametrize(
        "a, b, merged",
        [
            ("6123-", "4567", "61234567"),
            ("6123-4567 /", "775-1234", "6123-4567 775-1234"),
            ("6123", "4567", "6123 4567"),
            ("", "4567", "4567"),
        ],
    )
    def test_merge_phone(self, a, b, merged):
        assert merge_phone(a, b) == merged


class TestRowFields:
    def test_same_role_fragments_merged(self, profile):
        row = text_row("Casa Verde", "Hostal", "info@casa", "verde.com")
        f = row_fields(row, profile)
        assert f.name == "Casa Verde"
        assert f.category == "Hostal"
        assert f.email == "info@casaverde.com"
        assert f.field_count() == 3

    def test_category_shaped_name_relabelled(self, profile):
        row = text_row("Hotel Las Palmas", "Hotel")
        assert label_row(row, profile) == [
            ("Hotel Las Palmas", FragmentRole.NAME),
            ("Hotel", FragmentRole.CATEGORY),
        ]

    def test_noise_only_row_is_empty(self, profile):
        row = text_row("Nombre", "Modalidad")
        assert row_fields(row, profile).is_empty()


# ── State machine ──────────────────────────────────────────────────────


class TestResolverStates:
    def test_initial_state(self, profile):
        assert ContinuationResolver(profile).state is ResolverState.AWAITING_RECORD

    def test_first_row_opens_record(self, profile):
        resolver = ContinuationResolver(profile)
        emitted = resolver.feed(make_row(name="Casa Verde", category="Hostal"))
        assert emitted == []
        assert resolver.state is ResolverState.RECORD_OPEN
        assert resolver.open_record.name == "Casa Verde"

    def test_finish_flushes(self, profile):
        resolver = ContinuationResolver(profile)
        resolver.feed(make_row(name="Casa Verde", category="Hostal"))
        (rec,) = resolver.finish()
        assert rec.category == "Hostal"
        assert resolver.state is ResolverState.AWAITING_RECORD
        assert resolver.finish() == []

    def test_category_row_emits_open_record(self, profile):
        resolver = ContinuationResolver(profile)
        resolver.feed(make_row(name="Casa Verde", category="Hostal"))
        (emitted,) = resolver.feed(make_row(name="Villa Sol", category="Hotel"))
        assert emitted.name == "Casa Verde"
        assert resolver.open_record.name == "Villa Sol"

    def test_noise_row_ignored(self, profile):
        resolver = ContinuationResolver(profile)
        resolver.feed(make_row(name="Casa Verde", category="Hostal"))
        assert resolver.feed(text_row("Nombre", "Teléfono")) == []
        assert resolver.open_record.name == "Casa Verde"

    def test_resolve_resets_between_sections(self, profile):
        resolver = ContinuationResolver(profile)
        first = resolver.resolve([make_row(name="Casa Verde", category="Hostal")])
        second = resolver.resolve([make_row(name="Villa Sol")])
        assert [r.name for r in first] == ["Casa Verde"]
        assert [r.name for r in second] == ["Villa Sol"]


class TestContinuationRules:
    def test_compound_category(self, profile):
        rows = [
            make_row(
                name="Casa Verde",
                category="Hostal",
                email="info@casaverde.com",
                phone="6123-4567",
                y=700,
            ),
            make_row(category="Familiar", y=686),
        ]
        records, resolver = _resolve(rows, profile)
        assert len(records) == 1
        assert records[0].category == "Hostal Familiar"
        assert resolver.rule_counts["compound"] == 1

    def test_compound_with_name_tail(self, profile):
        rows = [
            make_row(name="Campamento", category="Sitio de", y=700),
            make_row(name="Los Pinos", category="acampar", y=686),
        ]
        records, _ = _resolve(rows, profile)
        assert len(records) == 1
        assert records[0].category == "Sitio de acampar"
        assert records[0].name == "Campamento Los Pinos"

    def test_row_without_category_continues(self, profile):
        rows = [
            make_row(name="Villa", category="Hotel", phone="6123-4567", y=700),
            make_row(name="Mariposa", y=686),
        ]
        records, resolver = _resolve(rows, profile)
        assert [r.name for r in records] == ["Villa Mariposa"]
        assert resolver.rule_counts["no_category"] == 1

    def test_split_email_joined_without_space(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", email="info@casa", y=700),
            make_row(email="verde.com", y=686),
        ]
        records, _ = _resolve(rows, profile)
        assert records[0].email == "info@casaverde.com"

    def test_email_rule_on_its_own(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", email="info@casa", y=700),
            make_row(email="verde.com", y=686),
        ]
        records, resolver = _resolve(rows, profile, missing_category=False)
        assert len(records) == 1
        assert records[0].email == "info@casaverde.com"
        assert resolver.rule_counts["email"] == 1

    def test_email_tail_on_next_record_row_is_split(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", email="info@casa", y=700),
            make_row(name="Sol y Mar", category="Hotel", email="verde.com", y=686),
        ]
        records, _ = _resolve(rows, profile)
        assert [r.name for r in records] == ["Casa Verde", "Sol y Mar"]
        assert records[0].email == "info@casaverde.com"
        assert records[1].email == ""
        assert records[1].category == "Hotel"

    def test_split_rows_disabled_merges_whole_row(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", email="info@casa", y=700),
            make_row(name="Sol y Mar", category="Hotel", email="verde.com", y=686),
        ]
        records, _ = _resolve(rows, profile, split_mixed_rows=False)
        assert len(records) == 1
        assert records[0].name == "Casa Verde Sol y Mar"
        assert records[0].email == "info@casaverde.com"

    def test_hyphen_phone_tail_on_next_record_row(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", phone="6123-", y=700),
            make_row(name="Sol y Mar", category="Hotel", phone="4567", y=686),
        ]
        records, resolver = _resolve(rows, profile)
        assert [r.phone for r in records] == ["61234567", ""]
        assert resolver.rule_counts["phone"] == 1

    def test_slash_keeps_second_number(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", phone="6123-4567 /", y=700),
            make_row(phone="775-1234", y=686),
        ]
        records, _ = _resolve(rows, profile)
        assert records[0].phone == "6123-4567 775-1234"

    def test_orphan_category_off_by_default(self, profile):
        rows = [
            make_row(name="Casa Verde", email="info@casaverde.com", y=700),
            make_row(category="Hostal", y=686),
        ]
        records, _ = _resolve(rows, profile)
        assert len(records) == 2

    def test_orphan_category_adopted_when_enabled(self, profile):
        rows = [
            make_row(name="Casa Verde", email="info@casaverde.com", y=700),
            make_row(category="Hostal", y=686),
        ]
        records, resolver = _resolve(rows, profile, adopt_orphan_category=True)
        assert len(records) == 1
        assert records[0].category == "Hostal"
        assert resolver.rule_counts["orphan_category"] == 1

    def test_one_record_per_category(self, profile):
        rows = [
            make_row(name="Casa Verde", category="Hostal", y=700),
            make_row(name="Villa Sol", category="Hotel", y=686),
            make_row(name="Posada Real", category="Posada", y=672),
        ]
        records, _ = _resolve(rows, profile)
        assert [r.category for r in records] == ["Hostal", "Hotel", "Posada"]
