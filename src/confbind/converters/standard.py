"""Converters for scalar standard library types."""

import re
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any, get_origin

from ..errors import ValueFormatError
from ..utils import require
from .base import AttributeMap, ScalarTypeConverter, is_class_of, target_type
from .escaping import escape_java, unescape_java

ESCAPE = "escape"
TRUE = "true"
FALSE = "false"


class StringConverter(ScalarTypeConverter):
    """String converter applying Java-style escape sequences.

    Escaping is on by default and can be switched per property with the
    ``escape`` attribute (``true`` or ``false``).
    """

    target = str

    def __init__(self, escape: bool = True):
        self.escape = escape

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        return super().is_applicable(type_, attributes) and not is_class_of(type_, Enum)

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> str:
        return unescape_java(value) if self._should_escape(attributes) else value

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return escape_java(value) if self._should_escape(attributes) else value

    def _should_escape(self, attributes: AttributeMap) -> bool:
        if not attributes or ESCAPE not in attributes:
            return self.escape
        escape = attributes[ESCAPE]
        if escape == TRUE:
            return True
        if escape == FALSE:
            return False
        raise ValueFormatError(
            f"Invalid '{ESCAPE}' attribute value, it must be either '{TRUE}' or '{FALSE}', "
            f"but '{escape}' is provided"
        )


class BooleanConverter(ScalarTypeConverter):
    """Accepts exactly ``true`` and ``false``."""

    target = bool

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> bool:
        if value == TRUE:
            return True
        if value == FALSE:
            return False
        raise ValueFormatError(f"Unable to convert to a bool: {value}")

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return TRUE if value else FALSE


class IntegerConverter(ScalarTypeConverter):
    target = int

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        return super().is_applicable(type_, attributes) and not is_class_of(type_, bool, Enum)

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> int:
        number = int(value)
        return number if type_ is int else type_(number)


class FloatConverter(ScalarTypeConverter):
    target = float

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        return super().is_applicable(type_, attributes) and not is_class_of(type_, Enum)

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> float:
        return float(value)

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return repr(float(value))


class DecimalConverter(ScalarTypeConverter):
    target = Decimal

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> Decimal:
        return type_(value)


class EnumConverter(ScalarTypeConverter):
    """Converts enumerations by member name."""

    target = Enum

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> Enum:
        try:
            return type_[value]
        except KeyError:
            names = ", ".join(member.name for member in type_)
            raise ValueFormatError(
                f"Unable to convert '{value}' to {type_.__qualname__}, the value must be one of: {names}"
            ) from None

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return value.name


_DURATION = re.compile(
    r"([-+]?)P(?:([-+]?[0-9]+)D)?"
    r"(T(?:([-+]?[0-9]+)H)?(?:([-+]?[0-9]+)M)?(?:([-+]?[0-9]+)(?:[.,]([0-9]{0,9}))?S)?)?",
    re.IGNORECASE,
)


class DurationConverter(ScalarTypeConverter):
    """ISO-8601 durations (``PnDTnHnMn.nS``) for ``timedelta``.

    Durations are written without days, e.g. ``PT36H`` or ``PT1.5S``.
    """

    target = timedelta

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> timedelta:
        match = _DURATION.fullmatch(value)
        if match is None or match.group(3) in ("T", "t") or not any(match.group(i) for i in (2, 4, 5, 6)):
            raise ValueFormatError(f"Text cannot be parsed to a duration: {value}")

        negative, days, _, hours, minutes, seconds, fraction = match.groups()
        duration = timedelta(
            days=int(days or 0),
            hours=int(hours or 0),
            minutes=int(minutes or 0),
            seconds=int(seconds or 0),
        )
        if fraction:
            micros = int((fraction + "000000")[:6])
            if seconds and seconds.startswith("-"):
                micros = -micros
            duration += timedelta(microseconds=micros)
        return -duration if negative == "-" else duration

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        total = value // timedelta(microseconds=1)
        if total == 0:
            return "PT0S"
        sign = "-" if total < 0 else ""
        hours, rest = divmod(abs(total), 3_600_000_000)
        minutes, rest = divmod(rest, 60_000_000)
        seconds, micros = divmod(rest, 1_000_000)

        parts = ["PT"]
        if hours:
            parts.append(f"{sign}{hours}H")
        if minutes:
            parts.append(f"{sign}{minutes}M")
        if seconds or micros:
            parts.append(f"{sign}{seconds}")
            if micros:
                parts.append(f".{micros:06d}".rstrip("0"))
            parts.append("S")
        return "".join(parts)


class DateTimeConverter(ScalarTypeConverter):
    """ISO-8601 ``datetime``, ``date`` and ``time`` values."""

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        return is_class_of(type_, datetime, date, time)

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> Any:
        return type_.fromisoformat(value)

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return value.isoformat()


class PatternConverter(ScalarTypeConverter):
    """Compiled regular expressions (``re.Pattern``)."""

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        type_ = target_type(type_)
        return (get_origin(type_) or type_) is re.Pattern

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> re.Pattern:
        try:
            return re.compile(value)
        except re.error as e:
            raise ValueFormatError(f"Invalid regular expression '{value}': {e}") from e

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return value.pattern


class PathConverter(ScalarTypeConverter):
    target = PurePath

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> PurePath:
        return type_(value)


class UUIDConverter(ScalarTypeConverter):
    target = uuid.UUID

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> uuid.UUID:
        return uuid.UUID(value)


def standard_converters(escape: bool = True) -> list[ScalarTypeConverter]:
    """Scalar converters in their default registration order."""
    return [
        StringConverter(escape),
        BooleanConverter(),
        IntegerConverter(),
        FloatConverter(),
        DecimalConverter(),
        EnumConverter(),
        DurationConverter(),
        DateTimeConverter(),
        PatternConverter(),
        PathConverter(),
        UUIDConverter(),
    ]
