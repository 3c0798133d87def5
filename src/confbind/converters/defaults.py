"""The default converter chain."""

from typing import Optional

from .base import ChainedTypeConverter
from .jsonlike import JsonLikeConverterFactory
from .standard import standard_converters
from .structured import StructuredConverter, TypeAdapterPools
from .yaml_converter import YamlConverter


def default_type_converter(
    compact: bool = True,
    escape: bool = True,
    pools: Optional[TypeAdapterPools] = None,
) -> ChainedTypeConverter:
    """Create the converter chain used when no converter is configured.

    Args:
        compact: Default notation of collection values.
        escape: Apply Java-style escapes to string values by default.
        pools: ``TypeAdapter`` pools shared by the YAML and structured
            converters; the process-wide pools when omitted.

    Returns:
        Chain of the YAML, scalar and structured converters, followed by the
        JSON-like collection converter.
    """
    converters = [
        YamlConverter(pools),
        *standard_converters(escape),
        StructuredConverter(pools),
    ]
    return ChainedTypeConverter(converters, [JsonLikeConverterFactory(compact)])
