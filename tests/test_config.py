"""Tests for config module."""

import json

import pytest

from toon_optimizer.config import DEFAULT_OPTIONS, Dialect, ToonOptions


class TestDefaults:
    def test_values(self):
        opts = ToonOptions()
        assert opts.delimiter == "|"
        assert opts.array_delimiter == ","
        assert opts.prefix == "~"
        assert opts.max_depth == 10
        assert opts.use_header_row is True
        assert opts.include_nulls is False
        assert opts.case_insensitive is True

    def test_default_instance(self):
        assert DEFAULT_OPTIONS == ToonOptions()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_OPTIONS.delimiter = ";"

    def test_dialect_from_string(self):
        assert Dialect("standard") is Dialect.STANDARD
        assert Dialect("compact") is Dialect.COMPACT


class TestValidation:
    @pytest.mark.parametrize("changes", [
        {"delimiter": ","},
        {"prefix": "|"},
        {"array_delimiter": "~"},
    ])
    def test_rejects_shared_characters(self, changes):
        with pytest.raises(ValueError, match="distinct"):
            ToonOptions(**changes)

    @pytest.mark.parametrize("value", ["", "||"])
    def test_rejects_multi_char_delimiter(self, value):
        with pytest.raises(ValueError, match="single character"):
            ToonOptions(delimiter=value)

    def test_rejects_negative_depth(self):
        with pytest.raises(ValueError, match="max_depth"):
            ToonOptions(max_depth=-1)

    def test_replace_validates(self):
        assert DEFAULT_OPTIONS.replace(delimiter=";").delimiter == ";"
        with pytest.raises(ValueError):
            DEFAULT_OPTIONS.replace(prefix=",")


class TestFromFile:
    def test_json(self, tmp_path):
        cfg_file = tmp_path / "toon.json"
        cfg_file.write_text(json.dumps({"delimiter": ";", "max_depth": 3, "include_nulls": True}))
        opts = ToonOptions.from_file(cfg_file)
        assert opts.delimiter == ";"
        assert opts.max_depth == 3
        assert opts.include_nulls is True
        assert opts.prefix == "~"

    def test_yaml(self, tmp_path):
        cfg_file = tmp_path / "toon.yaml"
        cfg_file.write_text("prefix: '@'\nuse_header_row: false\n")
        opts = ToonOptions.from_file(str(cfg_file))
        assert opts.prefix == "@"
        assert opts.use_header_row is False

    def test_empty_file_gives_defaults(self, tmp_path):
        cfg_file = tmp_path / "toon.yaml"
        cfg_file.write_text("")
        assert ToonOptions.from_file(cfg_file) == ToonOptions()

    def test_unknown_key(self, tmp_path):
        cfg_file = tmp_path / "toon.json"
        cfg_file.write_text(json.dumps({"delimeter": ";"}))
        with pytest.raises(ValueError, match="unknown option"):
            ToonOptions.from_file(cfg_file)

    def test_not_a_mapping(self, tmp_path):
        cfg_file = tmp_path / "toon.yaml"
        cfg_file.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected a mapping"):
            ToonOptions.from_file(cfg_file)


class TestFromEnv:
    def test_unset_gives_defaults(self, monkeypatch):
        for name in ("TOON_DELIMITER", "TOON_ARRAY_DELIMITER", "TOON_PREFIX", "TOON_MAX_DEPTH",
                     "TOON_USE_HEADER_ROW", "TOON_INCLUDE_NULLS", "TOON_DATETIME_FORMAT", "TOON_CASE_INSENSITIVE"):
            monkeypatch.delenv(name, raising=False)
        assert ToonOptions.from_env() == ToonOptions()

    def test_env_parsing(self, monkeypatch):
        monkeypatch.setenv("TOON_DELIMITER", ";")
        monkeypatch.setenv("TOON_ARRAY_DELIMITER", "/")
        monkeypatch.setenv("TOON_PREFIX", "^")
        monkeypatch.setenv("TOON_MAX_DEPTH", "4")
        monkeypatch.setenv("TOON_USE_HEADER_ROW", "no")
        monkeypatch.setenv("TOON_INCLUDE_NULLS", "true")
        monkeypatch.setenv("TOON_CASE_INSENSITIVE", "0")
        opts = ToonOptions.from_env()
        assert (opts.delimiter, opts.array_delimiter, opts.prefix) == (";", "/", "^")
        assert opts.max_depth == 4
        assert opts.use_header_row is False
        assert opts.include_nulls is True
        assert opts.case_insensitive is False

    @pytest.mark.parametrize("raw,expected", [
        ("false", False), ("FALSE", False), ("0", False), ("no", False),
        ("true", True), ("1", True), ("yes", True), ("", True),
    ])
    def test_bool_words(self, monkeypatch, raw, expected):
        monkeypatch.setenv("TOON_USE_HEADER_ROW", raw)
        assert ToonOptions.from_env().use_header_row is expected


class TestLoad:
    def test_prefers_config_file(self, tmp_path, monkeypatch):
        cfg_file = tmp_path / "toon.json"
        cfg_file.write_text(json.dumps({"delimiter": ";"}))
        monkeypatch.setenv("TOON_CONFIG", str(cfg_file))
        monkeypatch.setenv("TOON_DELIMITER", "#")
        assert ToonOptions.load().delimiter == ";"

    def test_falls_back_to_env(self, monkeypatch):
        monkeypatch.delenv("TOON_CONFIG", raising=False)
        monkeypatch.setenv("TOON_DELIMITER", "#")
        assert ToonOptions.load().delimiter == "#"
