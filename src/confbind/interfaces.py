"""Core interfaces for confbind.

These interfaces define the contracts between the binding engine and its
pluggable collaborators: configuration sources, type converters and value
processors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterable, Iterator, Mapping, Optional, TypeVar

from .attributes import EMPTY_ATTRIBUTES, Attributes

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class OptionalValue(Generic[T]):
    """A value that is absent, present, or present with ``None``.

    ``typing.Optional`` cannot tell "the key holds null" apart from "the key
    does not exist"; sources and defaults need both.

    Attributes:
        value: The wrapped value (None when absent or explicitly null).
        present: Whether a value (possibly None) exists.
    """
    value: Optional[T] = None
    present: bool = False

    @classmethod
    def absent(cls) -> "OptionalValue[Any]":
        return ABSENT

    @classmethod
    def of(cls, value: Optional[T]) -> "OptionalValue[T]":
        """Wrap a value; ``of(None)`` is the present-null marker."""
        if value is None:
            return PRESENT_NULL
        return cls(value, True)

    @property
    def is_present(self) -> bool:
        return self.present

    @property
    def is_absent(self) -> bool:
        return not self.present

    def get(self) -> Optional[T]:
        """Return the value.

        Raises:
            LookupError: If the value is absent.
        """
        if not self.present:
            raise LookupError("Value is absent")
        return self.value

    def get_or_none(self) -> Optional[T]:
        return self.value if self.present else None

    def or_else(self, default: Optional[T]) -> Optional[T]:
        return self.value if self.present else default

    def map(self, fn: Callable[[T], U]) -> "OptionalValue[U]":
        """Apply ``fn`` to a present, non-null value."""
        if not self.present:
            return ABSENT
        if self.value is None:
            return PRESENT_NULL
        return OptionalValue.of(fn(self.value))

    def __repr__(self) -> str:
        if not self.present:
            return "OptionalValue.absent()"
        return f"OptionalValue.of({self.value!r})"


ABSENT: OptionalValue[Any] = OptionalValue(None, False)
PRESENT_NULL: OptionalValue[Any] = OptionalValue(None, True)


@dataclass(frozen=True)
class ConfigurationEntry:
    """A key and the raw value a source holds for it."""
    key: str
    value: Optional[str]


@dataclass
class ConfigurationValue:
    """Mutable record passed through the value processor chain.

    Attributes:
        key: Key the value was found under (None when it came from a default).
        value: Raw string value (None for explicit null).
        from_default: True when no source key matched and the default was used.
        encryption_provider: Name of the provider able to decrypt the value,
            None once the value is plaintext.
        attributes: Custom attributes of the property being resolved.
    """
    key: Optional[str]
    value: Optional[str]
    from_default: bool = False
    encryption_provider: Optional[str] = None
    attributes: Attributes = field(default_factory=lambda: EMPTY_ATTRIBUTES)

    @property
    def is_encrypted(self) -> bool:
        return self.encryption_provider is not None

    def set_decrypted_value(self, value: Optional[str]) -> None:
        """Replace an encrypted value with its plaintext and clear the tag.

        Raises:
            ValueError: If the value is not encrypted.
        """
        if not self.is_encrypted:
            raise ValueError(f"Value of '{self.key}' is not encrypted")
        self.value = value
        self.encryption_provider = None


class IConfigurationSource(ABC):
    """Interface for key/value configuration sources."""

    @abstractmethod
    def get_value(
        self, key: str, attributes: Optional[Mapping[str, Optional[str]]] = None
    ) -> OptionalValue[str]:
        """Look up a single key.

        Args:
            key: Key to look up.
            attributes: Custom property attributes; simple sources ignore them.

        Returns:
            Absent when the key does not exist, present (possibly None) otherwise.
        """
        pass

    def find_entry(
        self, keys: Iterable[str], attributes: Optional[Mapping[str, Optional[str]]] = None
    ) -> Optional[ConfigurationEntry]:
        """Return the entry for the first key with a present value."""
        for key in keys:
            value = self.get_value(key, attributes)
            if value.is_present:
                return ConfigurationEntry(key, value.value)
        return None


class IIterableConfigurationSource(IConfigurationSource):
    """Source able to enumerate everything it holds."""

    @abstractmethod
    def get_all_entries(self) -> Iterator[ConfigurationEntry]:
        pass


class IWritableConfigurationSource(IConfigurationSource):
    """Source that can be modified at runtime."""

    @abstractmethod
    def set_value(
        self, key: str, value: Optional[str], attributes: Optional[Mapping[str, Optional[str]]] = None
    ) -> None:
        pass

    @abstractmethod
    def remove_value(self, key: str, attributes: Optional[Mapping[str, Optional[str]]] = None) -> None:
        pass


class ITypeConverter(ABC, Generic[T]):
    """Bidirectional ``str <-> T`` converter.

    Implementations must be symmetric (``from_string(to_string(v)) == v``),
    thread-safe and map None to None.

    Attributes:
        priority: Selection priority inside a chained converter; higher wins,
            ties keep registration order.
    """

    priority: int = 0

    @abstractmethod
    def is_applicable(self, type_: Any, attributes: Optional[Mapping[str, Optional[str]]] = None) -> bool:
        pass

    @abstractmethod
    def from_string(
        self, type_: Any, value: Optional[str], attributes: Optional[Mapping[str, Optional[str]]] = None
    ) -> Optional[T]:
        pass

    @abstractmethod
    def to_string(
        self, type_: Any, value: Optional[T], attributes: Optional[Mapping[str, Optional[str]]] = None
    ) -> Optional[str]:
        pass


class IConverterFactory(ABC):
    """Creates a converter that delegates item conversion to another converter.

    Used for generic containers: the produced converter handles the
    container syntax and hands every item to ``inner``.
    """

    @abstractmethod
    def create(self, inner: ITypeConverter) -> ITypeConverter:
        pass


class IValueProcessor(ABC):
    """Post-retrieval, pre-conversion transformation of a raw value."""

    @abstractmethod
    def process(self, value: ConfigurationValue) -> ConfigurationValue:
        pass


class IValueDecrypter(ABC):
    """Decrypts values tagged with the decrypter's name."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def decrypt(self, value: str, attributes: Optional[Mapping[str, Optional[str]]] = None) -> str:
        pass
