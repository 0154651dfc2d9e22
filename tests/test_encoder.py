"""Tests for the Standard and Compact encoders."""

from datetime import datetime
from decimal import Decimal

import pytest

from sample_models import EmptyClass, Node, Order, Product, Status, Tagged, Team, Thermostat, User
from toon_optimizer.config import DEFAULT_OPTIONS, Dialect, ToonOptions
from toon_optimizer.encoder import encode, encode_compact, encode_standard
from toon_optimizer.errors import DepthExceededError, ToonSerializationError

USERS = [User("Alice", 30, "NYC"), User("Bob", 25, "LA")]


class TestEncodeNone:
    @pytest.mark.parametrize("dialect", list(Dialect))
    def test_none_is_empty(self, dialect):
        assert encode(None, dialect) == ""

    def test_dialect_by_name(self):
        assert encode([1], "standard") == "[1]: 1"


class TestCompactPrimitives:
    def test_scalar_has_no_prefix(self):
        assert encode(42) == "42"
        assert encode("hello") == "hello"

    def test_int_array(self):
        assert encode([1, 2, 3]) == "~[1,2,3]"

    def test_empty_array(self):
        assert encode([]) == "~[]"

    def test_nulls_in_array(self):
        assert encode([1, None, 3]) == "~[1,,3]"

    def test_quoted_strings(self):
        assert encode(["a,b", "c"]) == '~["a,b",c]'

    def test_tuple_and_set(self):
        assert encode((1, 2)) == "~[1,2]"
        assert encode({7}) == "~[7]"

    def test_nested_sequences(self):
        assert encode([[1, 2], [3]]) == "~[~[1,2],~[3]]"
        assert encode([[], None, ["a"]]) == "~[~[],,~[a]]"


class TestCompactRecords:
    def test_record_array(self):
        assert encode(USERS) == "~[Age|City|Name]:30|NYC|Alice,25|LA|Bob"

    def test_without_header(self):
        opts = ToonOptions(use_header_row=False)
        assert encode(USERS, options=opts) == "~30|NYC|Alice,25|LA|Bob"

    def test_null_element_is_empty_row(self):
        assert encode([User("Alice", 30, "NYC"), None]) == "~[Age|City|Name]:30|NYC|Alice,||"

    def test_dict_records(self):
        rows = [{"id": 1, "name": "x"}, {"id": 2, "name": "y"}]
        assert encode(rows) == "~[id|name]:1|x,2|y"

    def test_fieldless_elements(self):
        assert encode([EmptyClass()]) == "~[]"

    def test_nested_sequence_cell(self):
        assert encode([Tagged("a", ["x", "y"])]) == "~[Name|Tags]:a|~[x,y]"

    def test_custom_delimiters(self):
        opts = ToonOptions(delimiter=";", array_delimiter="/", prefix="@")
        assert encode(USERS, options=opts) == "@[Age;City;Name]:30;NYC;Alice/25;LA;Bob"


class TestCompactObjects:
    def test_object(self):
        assert encode(User("Alice", 30, "NYC")) == "~Age|30,City|NYC,Name|Alice"

    def test_dict_keeps_key_order(self):
        assert encode({"b": 1, "a": True}) == "~b|1,a|true"

    def test_empty_object(self):
        assert encode(EmptyClass()) == "~{}"
        assert encode({}) == "~{}"

    def test_nulls_skipped(self):
        assert encode(Order(Id=5)) == "~Id|5"

    def test_include_nulls(self):
        assert encode(Order(Id=5), options=ToonOptions(include_nulls=True)) == "~Customer|,Id|5"

    def test_nested_object(self):
        order = Order(Id=5, Customer=User("Alice", 30, "NYC"))
        assert encode(order) == "~Customer|~Age|30,City|NYC,Name|Alice,Id|5"

    def test_nested_record_array(self):
        team = Team("core", USERS)
        assert encode(team) == "~Members|~[Age|City|Name]:30|NYC|Alice,25|LA|Bob,Name|core"

    def test_scalar_kinds(self):
        product = Product(1, "Lamp", Decimal("9.99"), Added=datetime(2024, 3, 1, 12, 0, 0))
        assert encode(product) == "~Added|2024-03-01T12:00:00,Id|1,InStock|true,Price|9.99,Title|Lamp"

    def test_enum_by_name(self):
        assert encode({"state": Status.ACTIVE}) == "~state|ACTIVE"

    def test_properties(self):
        t = Thermostat()
        t.Room = "Hall"
        t.Celsius = 20.0
        assert encode(t) == "~Celsius|20,Fahrenheit|68,Room|Hall"


class TestStandard:
    def test_scalar(self):
        assert encode("true", Dialect.STANDARD) == '"true"'
        assert encode(7, Dialect.STANDARD) == "7"

    def test_primitive_array(self):
        assert encode([1, 2, 3], Dialect.STANDARD) == "[3]: 1,2,3"

    def test_empty_array(self):
        assert encode([], Dialect.STANDARD) == "[0]:"

    def test_null_in_array(self):
        assert encode(["a", None], Dialect.STANDARD) == "[2]: a,null"

    def test_nested_sequences(self):
        assert encode([[1, 2], [3]], Dialect.STANDARD) == '[2]: "  [2]: 1,2","  [1]: 3"'

    def test_record_array(self):
        assert encode(USERS, Dialect.STANDARD) == (
            "[2]{Age,City,Name}:\n"
            "  30,NYC,Alice\n"
            "  25,LA,Bob"
        )

    def test_null_record_row(self):
        assert encode([User("A", 1, "B"), None], Dialect.STANDARD) == "[2]{Age,City,Name}:\n  1,B,A\n  ,,"

    def test_object(self):
        assert encode(User("Alice", 30, "New York"), Dialect.STANDARD) == (
            "Age: 30\n"
            "City: New York\n"
            "Name: Alice"
        )

    def test_quoting_in_object(self):
        assert encode({"code": "007", "note": "a, b"}, Dialect.STANDARD) == 'code: "007"\nnote: "a, b"'

    def test_nested_object(self):
        order = Order(Id=5, Customer=User("Alice", 30, "NYC"))
        assert encode(order, Dialect.STANDARD) == (
            "Customer:\n"
            "  Age: 30\n"
            "  City: NYC\n"
            "  Name: Alice\n"
            "Id: 5"
        )

    def test_empty_nested_object(self):
        assert encode({"meta": {}, "id": 1}, Dialect.STANDARD) == "meta:\nid: 1"

    def test_sequence_field(self):
        assert encode(Tagged("a", ["x", "y"]), Dialect.STANDARD) == "Name: a\nTags[2]: x,y"

    def test_record_array_field(self):
        assert encode(Team("core", USERS), Dialect.STANDARD) == (
            "Members[2]{Age,City,Name}:\n"
            "    30,NYC,Alice\n"
            "    25,LA,Bob\n"
            "Name: core"
        )

    def test_nested_cell_is_quoted(self):
        assert encode([Tagged("a", ["x", "y"])], Dialect.STANDARD) == (
            '[1]{Name,Tags}:\n'
            '  a,"  [2]: x,y"'
        )

    def test_empty_object(self):
        assert encode({}, Dialect.STANDARD) == "{}"

    def test_include_nulls(self):
        assert encode(Order(Id=1), Dialect.STANDARD, ToonOptions(include_nulls=True)) == "Customer: null\nId: 1"

    def test_first_line_not_indented(self):
        text = encode_standard(USERS, DEFAULT_OPTIONS, depth=2)
        assert text.startswith("[2]")
        assert text.splitlines()[1].startswith("      30")


class TestDepth:
    def test_zero_depth_nested_field(self):
        order = Order(Id=1, Customer=User())
        for dialect in Dialect:
            with pytest.raises(DepthExceededError) as exc_info:
                encode(order, dialect, ToonOptions(max_depth=0))
            assert exc_info.value.max_depth == 0

    def test_zero_depth_flat_is_fine(self):
        assert encode(User("A", 1, "B"), options=ToonOptions(max_depth=0)) == "~Age|1,City|B,Name|A"

    def test_cycle_hits_depth(self):
        node = Node("loop")
        node.Child = node
        with pytest.raises(DepthExceededError, match="Maximum depth of 10 exceeded"):
            encode(node)

    def test_direct_call(self):
        with pytest.raises(DepthExceededError):
            encode_compact([[1]], ToonOptions(max_depth=1), depth=2)


class TestWrapping:
    def test_unexpected_error_wrapped(self):
        class Broken:
            @property
            def value(self):
                raise RuntimeError("boom")

        with pytest.raises(ToonSerializationError, match="boom") as exc_info:
            encode(Broken())
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.target_type is Broken
