"""Tests for localisation file handling."""

import pytest

from paradox_mod_translator.errors import (
    FileTooLargeError,
    InvalidStructureError,
    WriteFailedError,
)
from paradox_mod_translator import parser
from paradox_mod_translator.parser import (
    check_structure,
    derive_target_filename,
    find_localisation_files,
    fix_yaml_content,
    fix_yaml_line,
    header_language,
    make_header,
    parse_entries,
    read_localisation_file,
    save_localisation_file,
    retarget_header,
    split_header,
    validate_localisation_file,
)


class TestDeriveTargetFilename:

    def test_prefix(self):
        assert derive_target_filename("l_english_events.yml", "english", "simp_chinese") == \
            "l_simp_chinese_events.yml"

    def test_suffix(self):
        assert derive_target_filename("events_l_english.yml", "english", "german") == \
            "events_l_german.yml"
        assert derive_target_filename("events_english.yaml", "english", "german") == \
            "events_german.yaml"

    def test_no_tag(self):
        assert derive_target_filename("events.yml", "english", "german") == "events.yml"


class TestSplitHeader:

    def test_header_first(self):
        header, body = split_header('l_english:\n key:0 "v"')
        assert header == "l_english:"
        assert body == ' key:0 "v"'

    def test_leading_blank_lines(self):
        header, body = split_header('\n\nl_english:\n key:0 "v"')
        assert header == "\n\nl_english:"
        assert body == ' key:0 "v"'

    def test_no_header(self):
        content = ' key:0 "v"\nl_english:'
        assert split_header(content) == ("", content)

    def test_header_language(self):
        assert header_language("l_simp_chinese:") == "simp_chinese"
        assert header_language("key:0") is None
        assert make_header("german") == "l_german:"

    def test_retarget_header_keeps_layout(self):
        header, _ = split_header('\n\n  l_english:\n key:0 "v"')
        assert retarget_header(header, "simp_chinese") == "\n\nl_simp_chinese:"
        assert retarget_header("l_english:", "german") == "l_german:"


class TestFixYaml:

    def test_tabs_and_trailing_space(self):
        assert fix_yaml_line('\tkey:0 "v"   ') == '  key:0 "v"'

    def test_quotes_unquoted_value(self):
        assert fix_yaml_line(" key:0 Hello there") == ' key:0 "Hello there"'

    def test_keeps_version_number(self):
        assert fix_yaml_line(' key:1 "v"') == ' key:1 "v"'

    def test_comments_untouched(self):
        assert fix_yaml_line(" # note: here") == " # note: here"

    def test_line_count_preserved(self):
        content = ' a:0 "x"\n\n\tb:0 y\n# c'
        fixed = fix_yaml_content(content)
        assert fixed.count("\n") == content.count("\n")
        assert fixed.split("\n")[2] == '  b:0 "y"'


class TestEntries:

    def test_parse_entries(self):
        content = 'l_english:\n key_a:0 "Hello"\n key.b: "World" # note\n# comment'
        assert parse_entries(content) == {"key_a": "Hello", "key.b": "World"}

    def test_check_structure(self, tmp_path):
        check_structure(' k:0 "v"', tmp_path / "x.yml")
        with pytest.raises(InvalidStructureError):
            check_structure("   \n", tmp_path / "x.yml")
        with pytest.raises(InvalidStructureError):
            check_structure("# only comments", tmp_path / "x.yml")


class TestReadAndSave:

    def test_read_strips_bom_and_crlf(self, tmp_path):
        path = tmp_path / "l_english_x.yml"
        path.write_bytes('\ufeffl_english:\r\n k:0 "v"\r\n'.encode("utf-8"))
        assert read_localisation_file(path) == 'l_english:\n k:0 "v"\n'

    def test_read_too_large(self, tmp_path, monkeypatch):
        path = tmp_path / "big.yml"
        path.write_text("x" * 100, encoding="utf-8")
        monkeypatch.setattr(parser, "MAX_FILE_SIZE", 10)
        with pytest.raises(FileTooLargeError):
            read_localisation_file(path)

    def test_save_writes_bom(self, tmp_path):
        path = tmp_path / "out" / "l_simp_chinese_x.yml"
        save_localisation_file('l_simp_chinese:\n k:0 "值"', path)
        raw = path.read_bytes()
        assert raw.startswith(b"\xef\xbb\xbf")
        assert raw.decode("utf-8-sig") == 'l_simp_chinese:\n k:0 "值"\n'
        assert [p.name for p in path.parent.iterdir()] == [path.name]

    def test_save_failure(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        with pytest.raises(WriteFailedError):
            save_localisation_file("x", blocker / "x.yml")

    def test_save_unencodable_text(self, tmp_path):
        path = tmp_path / "out" / "l_simp_chinese_x.yml"
        with pytest.raises(WriteFailedError):
            save_localisation_file(' k:0 "\ud83d"', path)
        assert list(path.parent.iterdir()) == []


class TestFiles:

    def test_validate(self, tmp_path):
        assert validate_localisation_file(tmp_path / "nope.yml").startswith("File not found")
        txt = tmp_path / "a.txt"
        txt.write_text("", encoding="utf-8")
        assert "Invalid file extension" in validate_localisation_file(txt)
        yml = tmp_path / "a.yml"
        yml.write_text("", encoding="utf-8")
        assert validate_localisation_file(yml) is None

    def test_find_recursive_sorted(self, tmp_path):
        (tmp_path / "sub").mkdir()
        for name in ["b.yml", "a.yaml", "sub/c.yml", "notes.txt"]:
            (tmp_path / name).write_text("", encoding="utf-8")
        found = [p.relative_to(tmp_path).as_posix() for p in find_localisation_files(tmp_path)]
        assert found == ["a.yaml", "b.yml", "sub/c.yml"]
