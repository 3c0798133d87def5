"""Converter building blocks and the chained (composite) converter."""

import logging
import threading
from abc import abstractmethod
from typing import Any, Callable, Mapping, Optional, Sequence, get_origin

from ..attributes import EMPTY_ATTRIBUTES, Attributes
from ..errors import NoApplicableConverterError, ValueFormatError
from ..interfaces import IConverterFactory, ITypeConverter
from ..utils import require, strip_annotated, type_name, unwrap_optional

logger = logging.getLogger(__name__)

AttributeMap = Optional[Mapping[str, Optional[str]]]


def target_type(type_: Any) -> Any:
    """Strip ``Annotated`` metadata and ``Optional`` from a property type."""
    return unwrap_optional(strip_annotated(type_))


def is_class_of(type_: Any, *classes: type) -> bool:
    """``type_`` is a plain class deriving from one of ``classes``."""
    type_ = target_type(type_)
    return isinstance(type_, type) and get_origin(type_) is None and issubclass(type_, classes)


class ScalarTypeConverter(ITypeConverter):
    """Converter for a single family of scalar types.

    Subclasses implement ``parse`` and ``format`` for non-null values; None
    handling and error wrapping happen here.

    Attributes:
        target: Base class of the supported types.
    """

    target: type = object

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        return is_class_of(type_, self.target)

    def from_string(self, type_: Any, value: Optional[str], attributes: AttributeMap = None) -> Any:
        require(type_, "type_")
        if value is None:
            return None
        try:
            return self.parse(target_type(type_), value, attributes)
        except ValueFormatError:
            raise
        except (ValueError, TypeError, ArithmeticError, LookupError) as e:
            raise ValueFormatError(
                f"Unable to convert '{value}' to {type_name(target_type(type_))}: {e}"
            ) from e

    def to_string(self, type_: Any, value: Any, attributes: AttributeMap = None) -> Optional[str]:
        require(type_, "type_")
        if value is None:
            return None
        try:
            return self.format(target_type(type_), value, attributes)
        except ValueFormatError:
            raise
        except (ValueError, TypeError, AttributeError, ArithmeticError, LookupError) as e:
            raise ValueFormatError(
                f"Unable to convert {value!r} from {type_name(target_type(type_))}: {e}"
            ) from e

    @abstractmethod
    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> Any:
        """Convert a non-null raw value."""

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return str(value)


class ChainedTypeConverter(ITypeConverter):
    """Delegates to the first applicable converter of a chain.

    Base converters are tried by descending ``priority``, ties keeping
    registration order. Converters produced by ``factories`` (generic
    containers delegating item conversion back to this chain) are tried
    after all base converters. The selected converter is cached per
    (type, attributes).

    Args:
        converters: Base converters.
        factories: Factories of delegating converters.
    """

    def __init__(
        self,
        converters: Sequence[ITypeConverter],
        factories: Sequence[IConverterFactory] = (),
    ):
        require(converters, "converters")
        for index, converter in enumerate(converters):
            if converter is None:
                raise ValueError(f"converters has a None element at index {index}")

        self._selected: dict[tuple[Any, Attributes], Optional[ITypeConverter]] = {}
        self._lock = threading.Lock()
        # sorted() is stable so equal priorities keep registration order
        self._converters = sorted(converters, key=lambda converter: -converter.priority)
        delegating = [factory.create(self) for factory in factories]
        self._converters.extend(sorted(delegating, key=lambda converter: -converter.priority))

    @property
    def converters(self) -> list[ITypeConverter]:
        return list(self._converters)

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        return self.converter_for(type_, attributes, required=False) is not None

    def from_string(self, type_: Any, value: Optional[str], attributes: AttributeMap = None) -> Any:
        require(type_, "type_")
        return self.converter_for(type_, attributes).from_string(type_, value, attributes)

    def to_string(self, type_: Any, value: Any, attributes: AttributeMap = None) -> Optional[str]:
        require(type_, "type_")
        return self.converter_for(type_, attributes).to_string(type_, value, attributes)

    def converter_for(
        self, type_: Any, attributes: AttributeMap = None, required: bool = True
    ) -> Optional[ITypeConverter]:
        """Select the converter handling ``type_``.

        Raises:
            NoApplicableConverterError: If ``required`` and nothing applies.
        """
        attributes = attributes if isinstance(attributes, Attributes) else Attributes(attributes or {})
        try:
            cache_key = (type_, attributes or EMPTY_ATTRIBUTES)
            hash(cache_key)
        except TypeError:
            cache_key = None

        if cache_key is not None and cache_key in self._selected:
            converter = self._selected[cache_key]
        else:
            converter = self._select(type_, attributes)
            if cache_key is not None:
                with self._lock:
                    converter = self._selected.setdefault(cache_key, converter)

        if converter is None and required:
            raise NoApplicableConverterError(f"Don't know how to convert {type_name(type_)}")
        return converter

    def _select(self, type_: Any, attributes: Attributes) -> Optional[ITypeConverter]:
        for converter in self._converters:
            if converter.is_applicable(type_, attributes):
                logger.debug("Selected %s for %s", type(converter).__name__, type_name(type_))
                return converter
        return None


class FunctionConverter(ScalarTypeConverter):
    """Scalar converter built from a pair of functions.

    Handy for one-off explicit converters:

        Converter(FunctionConverter(Money, Money.parse, str))
    """

    def __init__(self, target: type, parse: Callable[[str], Any], format: Callable[[Any], str] = str):
        self.target = require(target, "target")
        self._parse = require(parse, "parse")
        self._format = format

    def parse(self, type_: Any, value: str, attributes: AttributeMap) -> Any:
        return self._parse(value)

    def format(self, type_: Any, value: Any, attributes: AttributeMap) -> str:
        return self._format(value)
