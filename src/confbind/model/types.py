"""Configuration model: the typed, cycle-checked schema of a configuration shape."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..attributes import EMPTY_ATTRIBUTES, Attributes
from ..errors import InvalidSchemaError
from ..interfaces import ABSENT, ITypeConverter, OptionalValue
from ..keys import size_key
from ..utils import ordered_unique

SIZE_SUFFIX = "__size"


@dataclass(frozen=True, eq=False)
class PropertyModel:
    """Common part of every property model.

    Attributes:
        name: Property name.
        type: Target type (``Annotated`` metadata stripped).
        description: Optional human readable description.
        attributes: Custom attributes declared on the property.
    """
    name: str
    type: Any
    description: Optional[str]
    attributes: Attributes


@dataclass(frozen=True, eq=False)
class ValuePropertyModel(PropertyModel):
    """A property resolved from a single raw value.

    Attributes:
        keys: Configured keys, deduplicated, never empty.
        fallback_key: Bare key tried after every prefixed key.
        reset_prefix: Ignore prefixes inherited from enclosing configurations.
        encryption_provider: Provider name when the raw value is encrypted.
        default_value: Tri-state default (absent / null / string).
        converter: Explicit type converter overriding the registry.
    """
    keys: tuple[str, ...] = ()
    fallback_key: Optional[str] = None
    reset_prefix: bool = False
    encryption_provider: Optional[str] = None
    default_value: OptionalValue[str] = ABSENT
    converter: Optional[ITypeConverter] = None

    def __post_init__(self):
        keys = tuple(ordered_unique(self.keys))
        if not keys:
            raise InvalidSchemaError(f"Value property '{self.name}' must have at least one key")
        object.__setattr__(self, "keys", keys)


@dataclass(frozen=True, eq=False)
class SubConfigurationPropertyModel(PropertyModel):
    """A property holding a nested configuration.

    Attributes:
        model: Model of the nested configuration.
        declared_type: The annotation as declared; ``type`` is the actual shape.
        prefixes: Prefixes appended for this nesting level.
        reset_prefix: Start a fresh prefix stack from ``prefixes``.
        fallback_key: Fallback prefix handed to the nested value properties.
        default_values: Defaults of nested properties, keyed by property name.
    """
    model: "ConfigurationModel" = None
    declared_type: Any = None
    prefixes: tuple[str, ...] = ()
    reset_prefix: bool = False
    fallback_key: Optional[str] = None
    default_values: Mapping[str, Optional[str]] = field(default_factory=dict)


@dataclass(frozen=True, eq=False)
class SubConfigurationListPropertyModel(PropertyModel):
    """A property holding a list of nested configurations.

    Attributes:
        item_model: Model of the list elements.
        prefixes: Prefixes appended before the element index.
        reset_prefix: Start a fresh prefix stack.
        default_size: Element count used when no size is configured.
        default_values: Per-index defaults; element ``i`` uses entry ``i``.
    """
    item_model: "ConfigurationModel" = None
    prefixes: tuple[str, ...] = ()
    reset_prefix: bool = False
    default_size: int = 0
    default_values: tuple[Mapping[str, Optional[str]], ...] = ()

    def __post_init__(self):
        if self.default_size < 0:
            raise InvalidSchemaError(
                f"Default size of '{self.name}' cannot be negative, got {self.default_size}"
            )

    @property
    def size_keys(self) -> tuple[str, ...]:
        if not self.prefixes:
            return (size_key(None),)
        return tuple(size_key(prefix) for prefix in self.prefixes)

    @property
    def size_property(self) -> ValuePropertyModel:
        """Synthetic value property holding the configured list size."""
        return ValuePropertyModel(
            name=self.name + SIZE_SUFFIX,
            type=int,
            description=None,
            attributes=self.attributes,
            keys=self.size_keys,
            reset_prefix=self.reset_prefix,
            default_value=OptionalValue.of(str(self.default_size)),
        )


@dataclass(frozen=True, eq=False)
class ConfigurationModel:
    """Schema of one configuration shape.

    Models are compared by identity: two structurally identical shapes still
    get two distinct models.

    Attributes:
        type: The configuration shape.
        description: Optional human readable description.
        is_abstract: The shape can only be inherited from, not instantiated.
        prefixes: Prefixes applied to every key of the configuration.
        attributes: Custom attributes declared on the shape.
        properties: Property models in declaration order.
    """
    type: type
    description: Optional[str] = None
    is_abstract: bool = False
    prefixes: tuple[str, ...] = ()
    attributes: Attributes = EMPTY_ATTRIBUTES
    properties: tuple[PropertyModel, ...] = ()

    @property
    def property_names(self) -> list[str]:
        return [prop.name for prop in self.properties]

    def get_property(self, name: str) -> Optional[PropertyModel]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def __repr__(self) -> str:
        return f"ConfigurationModel({self.type.__qualname__}, properties={self.property_names})"
