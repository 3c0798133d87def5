"""Declaration markers for configuration shapes.

A configuration shape is a plain class whose public annotated attributes are
its properties. Metadata is attached with ``typing.Annotated`` markers and the
``configuration`` class decorator:

    @configuration(key="connection", description="Database connection")
    class ConnectionConfiguration:
        url: Annotated[str, Key("url", "uri"), Default("jdbc:h2:mem")]
        timeout: Annotated[timedelta, Key(), Default("PT30S")]
        password: Annotated[str, Key(), Encrypted()]
        retry: Annotated[RetryConfiguration, Key("retry")]
        replicas: Annotated[list[ReplicaConfiguration], DefaultSize(1)]

The explicit metadata strategy requires these markers; the convention
strategy infers keys from the property names and uses markers when present.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union, get_args, get_origin
import typing

from .utils import require, snake_case

DEFAULT_ENCRYPTION_PROVIDER = "default"
DECLARATION_ATTRIBUTE = "__confbind_configuration__"


class Marker:
    """Base class of all declaration markers."""


@dataclass(frozen=True, init=False)
class Key(Marker):
    """Configured keys of a value property or prefixes of a sub-configuration.

    ``Key()`` without values means "use the property name".
    """
    values: tuple[str, ...]

    def __init__(self, *values: str):
        for value in values:
            if not isinstance(value, str) or not value:
                raise ValueError(f"Key values must be non-empty strings, got {value!r}")
        object.__setattr__(self, "values", tuple(values))


@dataclass(frozen=True)
class IgnoreKey(Marker):
    """The sub-configuration does not contribute a prefix of its own."""


@dataclass(frozen=True)
class IgnorePrefix(Marker):
    """The property ignores all prefixes inherited from enclosing configurations."""


@dataclass(frozen=True)
class FallbackKey(Marker):
    """Bare key tried after all prefixed keys.

    On a sub-configuration it becomes the fallback prefix of every nested
    value property.
    """
    key: str


@dataclass(frozen=True)
class Default(Marker):
    """Default value as a string; ``Default(None)`` declares an explicit null."""
    value: Optional[str]

    def __post_init__(self):
        if self.value is not None and not isinstance(self.value, str):
            raise TypeError(f"Default value must be a string or None, got {self.value!r}")


@dataclass(frozen=True, init=False)
class Defaults(Marker):
    """Default values of a nested configuration, keyed by property name.

    Repeat the marker on a sub-configuration list to give defaults per
    element: the first marker applies to element 0, the second to element 1.
    """
    values: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __init__(self, values: Optional[Mapping[str, Optional[str]]] = None, **kwargs: Optional[str]):
        merged = dict(values or {})
        merged.update(kwargs)
        for name, value in merged.items():
            if value is not None and not isinstance(value, str):
                raise TypeError(f"Default for '{name}' must be a string or None, got {value!r}")
        object.__setattr__(self, "values", merged)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.values.items(), key=lambda item: item[0])))


@dataclass(frozen=True)
class DefaultSize(Marker):
    """Number of elements of a sub-configuration list when no size is configured."""
    size: int


@dataclass(frozen=True)
class Converter(Marker):
    """Explicit type converter for a value property (instance or class)."""
    converter: Any

    def create(self):
        converter = self.converter
        return converter() if isinstance(converter, type) else converter


@dataclass(frozen=True)
class Encrypted(Marker):
    """The raw value is encrypted and must be decrypted by the named provider."""
    provider: str = DEFAULT_ENCRYPTION_PROVIDER


@dataclass(frozen=True)
class Description(Marker):
    text: str


@dataclass(frozen=True)
class Meta(Marker):
    """Custom attribute passed along to sources and converters."""
    name: str
    value: Optional[str] = None


@dataclass(frozen=True)
class ConfigurationDeclaration:
    """Shape-level declaration stored by the ``configuration`` decorator.

    Attributes:
        prefixes: Declared prefixes; None when no key is declared, empty when
            the prefix is derived from the class name.
        abstract: Whether the shape only serves as a base for other shapes.
        description: Human readable description.
        meta: Custom attributes.
    """
    prefixes: Optional[tuple[str, ...]] = None
    abstract: bool = False
    description: Optional[str] = None
    meta: Mapping[str, Optional[str]] = field(default_factory=dict)

    def resolve_prefixes(self, shape: type) -> list[str]:
        if self.prefixes is None:
            return []
        if not self.prefixes:
            return [snake_case(shape.__name__)]
        return list(self.prefixes)


def configuration(
    cls: Optional[type] = None,
    *,
    key: Union[None, str, Sequence[str], Key] = None,
    abstract: bool = False,
    description: Optional[str] = None,
    meta: Optional[Mapping[str, Optional[str]]] = None,
):
    """Class decorator declaring a configuration shape.

    Usable bare (``@configuration``) or with arguments.

    Args:
        key: Prefix(es) for every key of the configuration. ``Key()``
            derives the prefix from the class name in snake_case.
        abstract: Mark the shape as a base that cannot be instantiated.
        description: Human readable description.
        meta: Custom attributes inherited by every property.
    """
    declaration = ConfigurationDeclaration(
        prefixes=_normalize_prefixes(key),
        abstract=abstract,
        description=description,
        meta=dict(meta or {}),
    )

    def decorate(target: type) -> type:
        if not isinstance(target, type):
            raise TypeError(f"@configuration can only decorate classes, got {target!r}")
        setattr(target, DECLARATION_ATTRIBUTE, declaration)
        return target

    if cls is not None:
        return decorate(cls)
    return decorate


def abstract_configuration(cls: Optional[type] = None, **kwargs: Any):
    """Shorthand for ``@configuration(abstract=True, ...)``."""
    return configuration(cls, abstract=True, **kwargs)


def get_declaration(shape: type, inherited: bool = True) -> Optional[ConfigurationDeclaration]:
    """Return the configuration declaration of a class.

    Args:
        shape: The class to inspect.
        inherited: Also look at base classes.
    """
    require(shape, "shape")
    if not inherited:
        return shape.__dict__.get(DECLARATION_ATTRIBUTE)
    for klass in getattr(shape, "__mro__", ()):
        declaration = klass.__dict__.get(DECLARATION_ATTRIBUTE)
        if declaration is not None:
            return declaration
    return None


def get_markers(annotation: Any) -> tuple[Marker, ...]:
    """Collect the declaration markers of an ``Annotated`` annotation."""
    markers: list[Marker] = []
    while get_origin(annotation) is typing.Annotated:
        args = get_args(annotation)
        markers.extend(arg for arg in args[1:] if isinstance(arg, Marker))
        annotation = args[0]
    return tuple(markers)


def _normalize_prefixes(key: Union[None, str, Sequence[str], Key]) -> Optional[tuple[str, ...]]:
    if key is None:
        return None
    if isinstance(key, Key):
        return key.values
    if isinstance(key, str):
        if not key:
            raise ValueError("key cannot be empty, use Key() to derive it from the class name")
        return (key,)
    prefixes = tuple(key)
    if not prefixes or not all(isinstance(prefix, str) and prefix for prefix in prefixes):
        raise ValueError(f"key must contain non-empty strings, got {key!r}")
    return prefixes
