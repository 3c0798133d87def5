"""Key, default and attribute propagation through a configuration model."""

from typing import Mapping, Optional

from ..attributes import EMPTY_ATTRIBUTES, Attributes
from ..interfaces import OptionalValue
from ..keys import EMPTY_KEY_GENERATOR, KeyGenerator, candidate_keys
from ..model import (
    ConfigurationModel,
    SubConfigurationListPropertyModel,
    SubConfigurationPropertyModel,
    ValuePropertyModel,
)
from ..resolution import PropertyMetadata


class ConfigurationInitializer:
    """Computes the resolution metadata of one configuration instance.

    An initializer describes where a configuration sits in the tree of
    nested configurations: the prefixes inherited from its ancestors, the
    fallback prefix and default values handed down by the enclosing
    property, and the inherited custom attributes.

    Args:
        model: Model of the configuration.
        key_generator: Prefixes inherited from enclosing configurations; the
            model's own prefixes are appended to them.
        fallback_prefix: Prefix of the fallback keys of every value property.
        default_values: Defaults overriding the model defaults, by property name.
        attributes: Custom attributes inherited by every property.
    """

    def __init__(
        self,
        model: ConfigurationModel,
        key_generator: KeyGenerator = EMPTY_KEY_GENERATOR,
        fallback_prefix: Optional[str] = None,
        default_values: Optional[Mapping[str, Optional[str]]] = None,
        attributes: Optional[Attributes] = None,
    ):
        self.model = model
        self.key_generator = key_generator.append(model.prefixes)
        self.fallback_prefix = fallback_prefix
        self.default_values = default_values or {}
        self.attributes = attributes if attributes is not None else EMPTY_ATTRIBUTES

    @classmethod
    def for_model(cls, model: ConfigurationModel) -> "ConfigurationInitializer":
        """Initializer of a top-level configuration."""
        return cls(model, attributes=model.attributes)

    def value_metadata(self, prop: ValuePropertyModel) -> PropertyMetadata:
        key_generator = EMPTY_KEY_GENERATOR if prop.reset_prefix else self.key_generator
        fallback_generator = KeyGenerator([self.fallback_prefix]) if self.fallback_prefix else None
        keys = candidate_keys(key_generator, prop.keys, fallback_generator, prop.fallback_key)

        if prop.name in self.default_values:
            default_value = OptionalValue.of(self.default_values[prop.name])
        else:
            default_value = prop.default_value

        return PropertyMetadata(
            name=prop.name,
            type=prop.type,
            keys=tuple(keys),
            default_value=default_value,
            converter=prop.converter,
            encryption_provider=prop.encryption_provider,
            attributes=Attributes.merge(self.attributes, prop.attributes),
        )

    def sub_configuration(self, prop: SubConfigurationPropertyModel) -> "ConfigurationInitializer":
        if prop.reset_prefix:
            key_generator = KeyGenerator(prop.prefixes)
        else:
            key_generator = self.key_generator.append(prop.prefixes)
        return ConfigurationInitializer(
            prop.model,
            key_generator=key_generator,
            fallback_prefix=prop.fallback_key,
            default_values=prop.default_values,
            attributes=self._nested_attributes(prop.model, prop.attributes),
        )

    def list_size_metadata(self, prop: SubConfigurationListPropertyModel) -> PropertyMetadata:
        return self.value_metadata(prop.size_property)

    def list_item(self, prop: SubConfigurationListPropertyModel, index: int) -> "ConfigurationInitializer":
        base = EMPTY_KEY_GENERATOR if prop.reset_prefix else self.key_generator
        default_values = prop.default_values[index] if index < len(prop.default_values) else {}
        return ConfigurationInitializer(
            prop.item_model,
            key_generator=base.append(prop.prefixes).append_index(index),
            default_values=default_values,
            attributes=self._nested_attributes(prop.item_model, prop.attributes),
        )

    def _nested_attributes(self, model: ConfigurationModel, property_attributes: Attributes) -> Attributes:
        return Attributes.merge(model.attributes, Attributes.merge(self.attributes, property_attributes))
