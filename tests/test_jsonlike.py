"""Tests for the JSON-like collection converter."""

from datetime import timedelta
from typing import Optional

import pytest
from pydantic import BaseModel

from confbind.errors import ValueFormatError


class Point(BaseModel):
    x: int
    y: int


class Unsupported:
    pass


JSON = {"format": "json"}


class TestCompactNotation:
    """Tests for the default compact notation."""

    def test_list_of_strings(self, type_converter):
        """Test a simple list."""
        assert type_converter.from_string(list[str], "[a,b]") == ["a", "b"]
        assert type_converter.to_string(list[str], ["a", "b"]) == "[a,b]"

    def test_empty_collections(self, type_converter):
        """Test empty lists and maps."""
        assert type_converter.from_string(list[str], "[]") == []
        assert type_converter.from_string(dict[str, int], "{}") == {}
        assert type_converter.to_string(list[str], []) == "[]"

    def test_trailing_comma_is_empty_item(self, type_converter):
        """Test that a trailing comma adds an empty string."""
        assert type_converter.from_string(list[str], "[a,]") == ["a", ""]

    def test_single_empty_string(self, type_converter):
        """Test the explicit empty marker."""
        assert type_converter.to_string(list[str], [""]) == "[\\@empty]"
        assert type_converter.from_string(list[str], "[\\@empty]") == [""]

    def test_null_items(self, type_converter):
        """Test the null marker inside and instead of a collection."""
        assert type_converter.to_string(list[Optional[str]], [None]) == "[\\@null]"
        assert type_converter.from_string(list[Optional[str]], "[\\@null]") == [None]
        assert type_converter.from_string(list[str], "\\@null") is None

    def test_special_characters_round_trip(self, type_converter):
        """Test that delimiters, backslashes and non-ASCII text survive."""
        values = ["a,b", "c]d", "k:v", "x\\y", "é", ""]

        text = type_converter.to_string(list[str], values)

        assert type_converter.from_string(list[str], text) == values

    def test_map(self, type_converter):
        """Test maps with converted values."""
        assert type_converter.from_string(dict[str, int], "{a:1,b:2}") == {"a": 1, "b": 2}
        assert type_converter.to_string(dict[str, int], {"a": 1}) == "{a:1}"

    def test_other_containers(self, type_converter):
        """Test sets, tuples and nested lists."""
        assert type_converter.from_string(set[int], "[1,2,2]") == {1, 2}
        assert type_converter.from_string(tuple[int, ...], "[1,2]") == (1, 2)
        assert type_converter.from_string(list[list[int]], "[[1,2],[3]]") == [[1, 2], [3]]
        assert type_converter.from_string(dict[str, list[int]], "{a:[1],b:[]}") == {"a": [1], "b": []}

    def test_models_as_items(self, type_converter):
        """Test that structured items are escaped and restored."""
        points = [Point(x=1, y=2), Point(x=3, y=4)]

        text = type_converter.to_string(list[Point], points)

        assert type_converter.from_string(list[Point], text) == points

    def test_applicability(self, type_converter):
        """Test that items must be convertible themselves."""
        assert type_converter.is_applicable(list[int])
        assert type_converter.is_applicable(dict[str, list[int]])
        assert not type_converter.is_applicable(list[Unsupported])
        assert not type_converter.is_applicable(dict[list[int], int])


class TestJsonNotation:
    """Tests for the JSON notation selected per property."""

    def test_strings_are_quoted(self, type_converter):
        """Test JSON output with nulls."""
        assert type_converter.to_string(list[Optional[str]], ["a", None], JSON) == '["a",null]'
        assert type_converter.from_string(list[Optional[str]], '["a",null]', JSON) == ["a", None]

    def test_escapes(self, type_converter):
        """Test JSON string escapes."""
        values = ['say "hi"', "a/b", "tab\there"]

        text = type_converter.to_string(list[str], values, JSON)

        assert text.startswith('["say ')
        assert type_converter.from_string(list[str], text, JSON) == values

    def test_map(self, type_converter):
        """Test JSON maps."""
        assert type_converter.from_string(dict[str, int], '{"a":"1"}', JSON) == {"a": 1}


class TestErrors:
    """Tests for malformed values."""

    def test_trailing_comma_in_map(self, type_converter):
        """Test that maps cannot end with a comma."""
        with pytest.raises(ValueFormatError, match="Expected object key"):
            type_converter.from_string(dict[str, int], "{a:1,}")

    def test_unterminated_list(self, type_converter):
        """Test a list without closing bracket."""
        with pytest.raises(ValueFormatError, match="Expected ',', ':', '}' or ']' starting at position 1"):
            type_converter.from_string(list[str], "[a")

    def test_extra_data(self, type_converter):
        """Test trailing characters."""
        with pytest.raises(ValueFormatError, match="not all characters have been consumed"):
            type_converter.from_string(list[str], "[a]x")

    def test_missing_bracket(self, type_converter):
        """Test a value that is not a list at all."""
        with pytest.raises(ValueFormatError, match="Expected '\\['"):
            type_converter.from_string(list[str], "a,b")

    def test_unquoted_json_string(self, type_converter):
        """Test that JSON notation requires quotes."""
        with pytest.raises(ValueFormatError, match="opening '\"'"):
            type_converter.from_string(list[str], "[a]", JSON)

    def test_invalid_format_attribute(self, type_converter):
        """Test attribute validation."""
        with pytest.raises(ValueFormatError, match="Invalid 'format' attribute value"):
            type_converter.from_string(list[str], "[a]", {"format": "xml"})

    def test_wrong_value_type_on_write(self, type_converter):
        """Test that values of the wrong shape fail with a format error."""
        with pytest.raises(ValueFormatError, match="Unable to convert 5 from list\\[int\\]"):
            type_converter.to_string(list[int], 5)
        with pytest.raises(ValueFormatError, match="Unable to convert"):
            type_converter.to_string(dict[str, int], ["a"])

    def test_wrong_item_type_on_write(self, type_converter):
        """Test that item failures are reported as format errors too."""
        with pytest.raises(ValueFormatError, match="from timedelta"):
            type_converter.to_string(list[timedelta], ["PT1S"])
