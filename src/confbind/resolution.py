"""Value resolution: source lookup, defaults, processors and conversion."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .attributes import EMPTY_ATTRIBUTES, Attributes
from .errors import DecryptionError
from .interfaces import (
    ABSENT,
    ConfigurationValue,
    IConfigurationSource,
    ITypeConverter,
    IValueProcessor,
    OptionalValue,
)
from .utils import require

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyMetadata:
    """Everything needed to resolve one property against a source.

    Built by the factory once the candidate keys of a property are known.

    Attributes:
        name: Property name.
        type: Target type of the conversion.
        keys: Ordered candidate keys.
        default_value: Tri-state default used when no key is present.
        converter: Explicit converter overriding the factory's converter.
        encryption_provider: Provider tag of encrypted values.
        attributes: Merged custom attributes.
    """
    name: str
    type: Any
    keys: tuple[str, ...]
    default_value: OptionalValue[str] = ABSENT
    converter: Optional[ITypeConverter] = None
    encryption_provider: Optional[str] = None
    attributes: Attributes = EMPTY_ATTRIBUTES


class ConfigurationValueProvider:
    """Resolves property values through the processor chain.

    Args:
        processors: Value processors applied in order to every raw value.
    """

    def __init__(self, processors: Sequence[IValueProcessor] = ()):
        self._processors = tuple(processors)

    @property
    def processors(self) -> tuple[IValueProcessor, ...]:
        return self._processors

    def get_value(
        self,
        type_converter: ITypeConverter,
        source: Optional[IConfigurationSource],
        metadata: PropertyMetadata,
    ) -> OptionalValue[Any]:
        """Resolve and convert the value of a property.

        Args:
            type_converter: Converter used when the property declares none.
            source: Configuration source; None resolves defaults only.
            metadata: Metadata of the property.

        Returns:
            Absent when neither a key nor a default provides a value, otherwise
            the converted value (None for explicit nulls).

        Raises:
            DecryptionError: If an encrypted value is left undecrypted.
            ValueFormatError: If the raw value cannot be converted.
        """
        require(type_converter, "type_converter")
        require(metadata, "metadata")

        raw: OptionalValue[str] = ABSENT
        resolved_key = None
        if source is not None:
            entry = source.find_entry(metadata.keys, metadata.attributes)
            if entry is not None:
                resolved_key = entry.key
                raw = OptionalValue.of(entry.value)

        from_default = raw.is_absent
        if from_default:
            raw = metadata.default_value
            if raw.is_absent:
                logger.debug("No value for '%s', tried %s", metadata.name, list(metadata.keys))
                return ABSENT
            logger.debug("Using default value of '%s'", metadata.name)
        else:
            logger.debug("Resolved '%s' from key '%s'", metadata.name, resolved_key)

        value = self._apply_processors(
            ConfigurationValue(
                key=resolved_key,
                value=raw.value,
                from_default=from_default,
                encryption_provider=metadata.encryption_provider,
                attributes=metadata.attributes,
            )
        )
        if value is None:
            return OptionalValue.of(None)

        converter = metadata.converter or type_converter
        return OptionalValue.of(converter.from_string(metadata.type, value, metadata.attributes))

    def _apply_processors(self, value: ConfigurationValue) -> Optional[str]:
        for processor in self._processors:
            value = processor.process(value)
        if value.is_encrypted:
            raise DecryptionError(
                f"Value of '{value.key}' is encrypted with '{value.encryption_provider}' but cannot be "
                "decrypted, please check that the matching decrypter is configured"
            )
        return value.value
