"""JSON-like notation for collections.

Lists and maps are written as ``[a,b]`` and ``{k:v}``. Items are converted by
an inner converter, so any type the converter chain handles can be an item,
nested collections included. Two notations are supported:

* compact (default): scalars are written unquoted; ``,`` ``:`` ``}`` ``]``
  and ``\\`` are escaped with a backslash. ``\\@null`` denotes None and
  ``\\@empty`` the empty string in a single element list.
* json: scalars are written as JSON strings and None as ``null``.

The notation can be selected per property with the ``format`` attribute
(``compact`` or ``json``).
"""

import collections
import collections.abc
from typing import Any, Optional, get_args, get_origin

from ..errors import ValueFormatError
from ..interfaces import IConverterFactory, ITypeConverter
from ..utils import require, type_name
from .base import AttributeMap, target_type
from .escaping import (
    NOT_FOUND,
    escape_compact,
    escape_json,
    not_escaped_index_of,
    unescape_compact,
    unescape_java,
)

FORMAT = "format"
COMPACT = "compact"
JSON = "json"

JSON_NULL = "null"
COMPACT_NULL = "\\@null"
COMPACT_EMPTY = "\\@empty"

_SEQUENCE_TYPES = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}
_MAPPING_TYPES = {
    dict: dict,
    collections.OrderedDict: collections.OrderedDict,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}
_HASHABLE_CONTAINERS = (tuple, frozenset, collections.abc.Set)

_DELIMITERS = (",", ":", "}", "]")

MSG_EXPECTED = "Expected {} but found '{}' at position {} of string {}"
MSG_EXPECTED_STARTING = "Expected {} starting at position {} of string {}"
MSG_NOT_TERMINATED = "Consumed all characters but not found ending {} in string {}"
MSG_EXTRA_DATA = "Object successfully constructed but not all characters have been consumed"
MSG_END_OF_DATA = "Unexpected end of string: {}"


def _sequence_item_type(type_: Any) -> Optional[Any]:
    origin = get_origin(type_)
    if origin not in _SEQUENCE_TYPES:
        return None
    args = get_args(type_)
    if origin is tuple:
        return args[0] if len(args) == 2 and args[1] is Ellipsis else None
    return args[0] if len(args) == 1 else None


def _mapping_item_types(type_: Any) -> Optional[tuple[Any, Any]]:
    if get_origin(type_) not in _MAPPING_TYPES:
        return None
    args = get_args(type_)
    return (args[0], args[1]) if len(args) == 2 else None


class JsonLikeConverter(ITypeConverter):
    """Converts generic lists, sets, tuples and maps.

    Args:
        inner: Converter of the individual items.
        compact: Use the compact notation unless a property asks otherwise.
    """

    def __init__(self, inner: ITypeConverter, compact: bool = True):
        self._inner = require(inner, "inner")
        self.compact = compact

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        type_ = target_type(type_)

        item_type = _sequence_item_type(type_)
        if item_type is not None:
            return self._handles(item_type)
        item_types = _mapping_item_types(type_)
        if item_types is not None:
            key_type, value_type = item_types
            return self._handles_key(key_type) and self._handles(value_type)
        return False

    def from_string(self, type_: Any, value: Optional[str], attributes: AttributeMap = None) -> Any:
        require(type_, "type_")
        if value is None:
            return None
        try:
            result, end = self._consume_item(type_, value, 0, self._is_compact(attributes))
        except IndexError:
            raise ValueFormatError(MSG_END_OF_DATA.format(value)) from None
        if end != len(value):
            raise ValueFormatError(MSG_EXTRA_DATA)
        return result

    def to_string(self, type_: Any, value: Any, attributes: AttributeMap = None) -> Optional[str]:
        require(type_, "type_")
        if value is None:
            return None
        out: list[str] = []
        try:
            self._append(type_, value, out, self._is_compact(attributes))
        except ValueFormatError:
            raise
        except (TypeError, ValueError, AttributeError) as e:
            raise ValueFormatError(
                f"Unable to convert {value!r} from {type_name(target_type(type_))}: {e}"
            ) from e
        return "".join(out)

    # =========================================================================
    # Parsing
    # =========================================================================

    def _consume_item(self, type_: Any, value: str, pos: int, compact: bool) -> tuple[Any, int]:
        """Parse the item starting at ``pos``; return it with the end position."""
        type_ = target_type(type_)
        item_type = _sequence_item_type(type_)
        if item_type is not None:
            return self._consume_list(type_, item_type, value, pos, compact)
        item_types = _mapping_item_types(type_)
        if item_types is not None:
            return self._consume_map(type_, item_types, value, pos, compact)

        if compact:
            found = not_escaped_index_of(value, pos, *_DELIMITERS)
            if found == NOT_FOUND:
                raise ValueFormatError(MSG_EXPECTED_STARTING.format("',', ':', '}' or ']'", pos, value))
            text = value[pos:found]
            if text == COMPACT_NULL:
                return None, found
            if text == COMPACT_EMPTY:
                text = ""
            return self._inner.from_string(type_, unescape_compact(text)), found

        if value[pos] != '"':
            null_end = self._consume_null(value, pos, compact)
            if null_end is not None:
                return None, null_end
            raise ValueFormatError(MSG_EXPECTED.format("opening '\"'", value[pos], pos, value))
        found = not_escaped_index_of(value, pos + 1, '"')
        if found == NOT_FOUND:
            raise ValueFormatError(MSG_EXPECTED_STARTING.format("closing '\"'", pos, value))
        return self._inner.from_string(type_, unescape_java(value[pos + 1:found])), found + 1

    def _consume_list(self, type_: Any, item_type: Any, value: str, pos: int, compact: bool) -> tuple[Any, int]:
        if value[pos] != "[":
            null_end = self._consume_null(value, pos, compact)
            if null_end is not None:
                return None, null_end
            raise ValueFormatError(MSG_EXPECTED.format("'['", value[pos], pos, value))

        items = []
        pos += 1
        while pos < len(value):
            if value[pos] == "]":
                return _SEQUENCE_TYPES[get_origin(type_)](items), pos + 1

            item, pos = self._consume_item(item_type, value, pos, compact)
            items.append(item)
            if value[pos] not in (",", "]"):
                raise ValueFormatError(MSG_EXPECTED.format("',' or ']'", value[pos], pos, value))
            if value[pos] == ",":
                pos += 1
                if value[pos] == "]":
                    # "[a,]" ends with an empty item
                    item, pos = self._consume_item(item_type, value, pos, compact)
                    items.append(item)
        raise ValueFormatError(MSG_NOT_TERMINATED.format("']'", value))

    def _consume_map(
        self, type_: Any, item_types: tuple[Any, Any], value: str, pos: int, compact: bool
    ) -> tuple[Any, int]:
        key_type, value_type = item_types
        if value[pos] != "{":
            null_end = self._consume_null(value, pos, compact)
            if null_end is not None:
                return None, null_end
            raise ValueFormatError(MSG_EXPECTED.format("'{'", value[pos], pos, value))

        result = _MAPPING_TYPES[get_origin(type_)]()
        pos += 1
        while pos < len(value):
            if value[pos] == "}":
                return result, pos + 1

            key, pos = self._consume_item(key_type, value, pos, compact)
            if value[pos] != ":":
                raise ValueFormatError(MSG_EXPECTED.format("':'", value[pos], pos, value))
            item, pos = self._consume_item(value_type, value, pos + 1, compact)
            result[key] = item

            if value[pos] not in (",", "}"):
                raise ValueFormatError(MSG_EXPECTED.format("',' or '}'", value[pos], pos, value))
            if value[pos] == ",":
                pos += 1
                if value[pos] == "}":
                    raise ValueFormatError(MSG_EXPECTED.format("object key", "}", pos, value))
        raise ValueFormatError(MSG_NOT_TERMINATED.format("'}'", value))

    @staticmethod
    def _consume_null(value: str, pos: int, compact: bool) -> Optional[int]:
        token = COMPACT_NULL if compact else JSON_NULL
        if value[pos] != token[0]:
            return None
        end = len(value)
        if end != pos + len(token):
            end = not_escaped_index_of(value, pos, *_DELIMITERS)
        if end == pos + len(token) and value[pos:end] == token:
            return end
        return None

    # =========================================================================
    # Formatting
    # =========================================================================

    def _append(self, type_: Any, value: Any, out: list[str], compact: bool, encode_empty: bool = False) -> None:
        if value is None:
            out.append(COMPACT_NULL if compact else JSON_NULL)
            return

        type_ = target_type(type_)
        item_type = _sequence_item_type(type_)
        if item_type is not None:
            out.append("[")
            items = list(value)
            for index, item in enumerate(items):
                if index:
                    out.append(",")
                # only a single element list needs an explicit empty string
                self._append(item_type, item, out, compact, encode_empty=len(items) == 1)
            out.append("]")
            return

        item_types = _mapping_item_types(type_)
        if item_types is not None:
            key_type, value_type = item_types
            out.append("{")
            for index, (key, item) in enumerate(value.items()):
                if index:
                    out.append(",")
                self._append(key_type, key, out, compact)
                out.append(":")
                self._append(value_type, item, out, compact)
            out.append("}")
            return

        text = self._inner.to_string(type_, value)
        if compact:
            out.append(COMPACT_EMPTY if encode_empty and text == "" else escape_compact(text))
        else:
            out.append(f'"{escape_json(text)}"')

    # =========================================================================
    # Helpers
    # =========================================================================

    def _handles(self, type_: Any) -> bool:
        return self.is_applicable(type_) or self._inner.is_applicable(type_)

    def _handles_key(self, type_: Any) -> bool:
        target = target_type(type_)
        origin = get_origin(target)
        if origin is not None and not (isinstance(origin, type) and issubclass(origin, _HASHABLE_CONTAINERS)):
            return False
        return self._handles(type_)

    def _is_compact(self, attributes: AttributeMap) -> bool:
        notation = attributes.get(FORMAT) if attributes else None
        if notation is None:
            return self.compact
        if notation == COMPACT:
            return True
        if notation == JSON:
            return False
        raise ValueFormatError(
            f"Invalid '{FORMAT}' attribute value, it must be either '{COMPACT}' or '{JSON}', "
            f"but '{notation}' is provided"
        )


class JsonLikeConverterFactory(IConverterFactory):
    """Creates ``JsonLikeConverter`` instances around an item converter."""

    def __init__(self, compact: bool = True):
        self.compact = compact

    def create(self, inner: ITypeConverter) -> JsonLikeConverter:
        return JsonLikeConverter(inner, self.compact)
