"""Tests for token estimates and comparison reports."""

import json
import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest

from sample_models import Status, User
from toon_optimizer import stats
from toon_optimizer.stats import (
    TokenComparisonStats,
    TokenReductionStats,
    compare_formats,
    count_tokens,
    estimate_tokens,
    to_json,
    token_reduction,
)

USERS = [User("Alice", 30, "NYC"), User("Bob", 25, "LA")]


class FakeEncoding:
    def encode(self, text):
        return text.split()


class TestEstimateTokens:
    def test_empty(self):
        assert estimate_tokens("") == 0

    def test_plain_text(self):
        assert estimate_tokens("abcdefgh") == 2

    def test_structural_chars_count_once(self):
        assert estimate_tokens("~[1,2,3]") == 5
        assert estimate_tokens('{"a":1}') == 5

    def test_mixed(self):
        assert estimate_tokens("Name|Alice") == 1 + 9 // 4


class TestCountTokens:
    def test_empty_skips_encoder(self, monkeypatch):
        def fail():
            raise AssertionError("encoding should not load")

        monkeypatch.setattr(stats, "_encoding", fail)
        assert count_tokens("") == 0

    def test_uses_encoding(self, monkeypatch):
        monkeypatch.setattr(stats, "_encoding", FakeEncoding)
        assert count_tokens("one two three") == 3


class TestToJson:
    def test_compact_separators(self):
        assert to_json({"a": [1, 2]}) == '{"a":[1,2]}'

    def test_indent(self):
        assert to_json({"a": 1}, indent=2) == '{\n  "a": 1\n}'

    def test_objects_use_schema_fields(self):
        assert to_json(USERS[0]) == '{"Age":30,"City":"NYC","Name":"Alice"}'

    def test_scalar_kinds(self):
        value = {
            "s": Status.ACTIVE,
            "d": date(2024, 1, 2),
            "t": datetime(2024, 1, 2, 3, 4, 5),
            "u": uuid.UUID(int=0),
            "m": Decimal("1.50"),
            "set": {1},
        }
        assert json.loads(to_json(value)) == {
            "s": "ACTIVE",
            "d": "2024-01-02",
            "t": "2024-01-02T03:04:05",
            "u": "00000000-0000-0000-0000-000000000000",
            "m": "1.50",
            "set": [1],
        }

    def test_unsupported(self):
        with pytest.raises(TypeError):
            to_json(object())


class TestTokenReductionStats:
    def test_derived_fields(self):
        s = TokenReductionStats(json_tokens=100, toon_tokens=40)
        assert s.tokens_saved == 60
        assert s.reduction_percent == 60.0

    def test_zero_json_tokens(self):
        assert TokenReductionStats().reduction_percent == 0.0

    def test_str(self):
        s = TokenReductionStats(json_tokens=100, toon_tokens=40)
        assert str(s) == "JSON: 100 tokens, TOON: 40 tokens, Saved: 60 (60.0%)"


class TestTokenReduction:
    def test_none(self):
        s = token_reduction(None)
        assert (s.json_tokens, s.toon_tokens, s.tokens_saved) == (0, 0, 0)
        assert s.json_output == "null"
        assert s.toon_output == ""

    def test_records(self):
        s = token_reduction(USERS)
        assert s.toon_output == "~[Age|City|Name]:30|NYC|Alice,25|LA|Bob"
        assert s.json_output == '[{"Age":30,"City":"NYC","Name":"Alice"},{"Age":25,"City":"LA","Name":"Bob"}]'
        assert s.json_tokens == estimate_tokens(s.json_output)
        assert s.toon_tokens == estimate_tokens(s.toon_output)
        assert s.tokens_saved > 0

    def test_standard_dialect(self):
        s = token_reduction(USERS, dialect="standard")
        assert s.toon_output.startswith("[2]{Age,City,Name}:")

    def test_tiktoken_method(self, monkeypatch):
        monkeypatch.setattr(stats, "_encoding", FakeEncoding)
        s = token_reduction({"a": "x y z"}, method="tiktoken")
        assert s.method == "tiktoken"
        assert s.toon_tokens == 3

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown token counting method"):
            token_reduction(USERS, method="words")


class TestCompareFormats:
    def test_none(self):
        s = compare_formats(None)
        assert s.json_output == "null"
        assert s.compact_saved == 0

    def test_records(self):
        s = compare_formats(USERS)
        assert s.standard_output.startswith("[2]{")
        assert s.compact_output.startswith("~[")
        assert s.compact_tokens <= s.standard_tokens < s.json_tokens
        assert s.compact_vs_standard_saved == s.standard_tokens - s.compact_tokens

    def test_percentages(self):
        s = TokenComparisonStats(json_tokens=200, standard_tokens=150, compact_tokens=100)
        assert s.standard_saved == 50
        assert s.compact_saved == 100
        assert s.standard_reduction_percent == 25.0
        assert s.compact_reduction_percent == 50.0
        assert "Compact TOON: 100 (50.0% saved)" in str(s)
