"""Tests for glossary module."""

import json

import pytest

from paradox_mod_translator import data_files
from paradox_mod_translator.errors import GlossaryNotFoundError, GlossaryParseError
from paradox_mod_translator.glossary import (
    Glossary,
    GlossaryEntry,
    Language,
    load_glossary,
    load_task_glossaries,
    merge_glossaries,
    parse_glossary,
)


@pytest.fixture
def glossary():
    return parse_glossary({
        "energy": {"1": "energy", "2": "能量"},
        "minerals": {"1": "minerals", "2": "矿物", "3": "minerales"},
        "ore": {"1": "ore", "2": "矿石"},
        "spanish_only": {"3": "aleaciones"},
    })


class TestLanguage:

    def test_from_key(self):
        assert Language.from_key("1") is Language.ENGLISH
        assert Language.from_key("2") is Language.SIMP_CHINESE
        assert Language.from_key("10") is Language.POLISH

    def test_from_key_unknown(self):
        assert Language.from_key("0") is None
        assert Language.from_key("11") is None
        assert Language.from_key("en") is None

    def test_parse(self):
        assert Language.parse("german") is Language.GERMAN
        assert Language.parse("klingon") is None


class TestGlossaryEntry:

    def test_from_raw_ignores_unknown_keys(self):
        entry = GlossaryEntry.from_raw({"1": "energy", "99": "x", "4": None})
        assert entry.get("english") == "energy"
        assert not entry.has_language("french")

    def test_from_raw_rejects_empty(self):
        with pytest.raises(ValueError):
            GlossaryEntry.from_raw({"1": "  "})

    def test_from_raw_rejects_non_string(self):
        with pytest.raises(ValueError):
            GlossaryEntry.from_raw({"1": 5})

    def test_from_raw_rejects_non_object(self):
        with pytest.raises(ValueError):
            GlossaryEntry.from_raw(["energy"])


class TestGlossary:

    def test_translation_map_filters_languages(self, glossary):
        mapping = glossary.translation_map("english", "simp_chinese")
        assert mapping == {"energy": "能量", "minerals": "矿物", "ore": "矿石"}

    def test_translation_map_partial(self, glossary):
        assert glossary.translation_map("english", "spanish") == {"minerals": "minerales"}

    def test_find_terms_case_insensitive(self, glossary):
        found = glossary.find_terms_in_text("ENERGY and Minerals", "english")
        assert found == {"energy", "minerals"}

    def test_find_terms_substring(self, glossary):
        assert "ore" in glossary.find_terms_in_text("Need more power", "english")

    def test_find_terms_none(self, glossary):
        assert glossary.find_terms_in_text("nothing here", "english") == set()

    def test_delimited_table(self, glossary):
        table = glossary.to_delimited_table("english", "simp_chinese", ["energy", "minerals"])
        assert table == "english,simp_chinese\nenergy,能量\nminerals,矿物\n"

    def test_delimited_table_skips_missing_target(self, glossary):
        table = glossary.to_delimited_table("english", "spanish", ["energy", "minerals"])
        assert table == "english,spanish\nminerals,minerales\n"

    def test_delimited_table_quotes_commas(self):
        g = parse_glossary({"t": {"1": "a, b", "2": "甲"}})
        table = g.to_delimited_table("english", "simp_chinese", ["a, b"])
        assert table.splitlines()[1] == '"a, b",甲'

    def test_len_bool_contains(self, glossary):
        assert len(glossary) == 4
        assert glossary
        assert "energy" in glossary
        assert not Glossary()


class TestParseGlossary:

    def test_skips_malformed_entries(self):
        g = parse_glossary({"good": {"1": "good"}, "bad": "oops", "empty": {}})
        assert list(g.entries) == ["good"]

    def test_rejects_non_object(self):
        with pytest.raises(GlossaryParseError):
            parse_glossary(["a", "b"])


class TestLoadGlossary:

    def test_load(self, tmp_path):
        path = tmp_path / "g.json"
        path.write_text(json.dumps({"energy": {"1": "energy", "2": "能量"}}), encoding="utf-8-sig")
        g = load_glossary(path)
        assert g.get("energy").get("simp_chinese") == "能量"

    def test_missing(self, tmp_path):
        with pytest.raises(GlossaryNotFoundError):
            load_glossary(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "g.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(GlossaryParseError):
            load_glossary(path)


class TestApply:

    def test_replaces_terms(self, glossary):
        assert glossary.apply("energy and minerals", "english", "simp_chinese") == "能量 and 矿物"

    def test_longest_term_first(self):
        g = parse_glossary({
            "energy": {"1": "energy", "2": "能量"},
            "energy_credits": {"1": "energy credits", "2": "能量币"},
        })
        assert g.apply("Gain energy credits", "english", "simp_chinese") == "Gain 能量币"

    def test_missing_target_untouched(self, glossary):
        assert glossary.apply("energy", "english", "german") == "energy"


class TestMergeGlossaries:

    def test_later_wins(self):
        first = parse_glossary({"energy": {"1": "energy", "2": "能源"}, "food": {"1": "food"}})
        second = parse_glossary({"energy": {"1": "energy", "2": "能量"}})
        merged = merge_glossaries([first, second])
        assert len(merged) == 2
        assert merged.get("energy").get("simp_chinese") == "能量"

    def test_empty(self):
        assert len(merge_glossaries([])) == 0


class TestLoadTaskGlossaries:

    @pytest.fixture
    def data_root(self, tmp_path, monkeypatch):
        root = tmp_path / "data"
        monkeypatch.setattr(data_files, "search_roots", lambda: [root])
        return root

    def _write(self, path, data):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")

    def test_custom_takes_precedence(self, data_root):
        self._write(data_root / "glossary" / "mod.json", {"energy": {"1": "energy", "2": "能源"}})
        self._write(data_root / "glossary_custom" / "mod.json", {"energy": {"1": "energy", "2": "能量"}})

        g = load_task_glossaries(["mod"])
        assert g.get("energy").get("simp_chinese") == "能量"

    def test_missing_name(self, data_root):
        with pytest.raises(GlossaryNotFoundError):
            load_task_glossaries(["unknown"])

    def test_bundled_glossary(self):
        g = load_task_glossaries(["stellaris"])
        assert g.get("energy").get("english") == "energy"
