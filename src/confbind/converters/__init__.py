"""Type converters between raw string values and typed property values."""

from .base import ChainedTypeConverter, FunctionConverter, ScalarTypeConverter
from .defaults import default_type_converter
from .jsonlike import JsonLikeConverter, JsonLikeConverterFactory
from .standard import (
    BooleanConverter,
    DateTimeConverter,
    DecimalConverter,
    DurationConverter,
    EnumConverter,
    FloatConverter,
    IntegerConverter,
    PathConverter,
    PatternConverter,
    StringConverter,
    UUIDConverter,
)
from .structured import StructuredConverter, TypeAdapterPool, TypeAdapterPools
from .yaml_converter import YamlConverter

__all__ = [
    "BooleanConverter",
    "ChainedTypeConverter",
    "DateTimeConverter",
    "DecimalConverter",
    "DurationConverter",
    "EnumConverter",
    "FloatConverter",
    "FunctionConverter",
    "IntegerConverter",
    "JsonLikeConverter",
    "JsonLikeConverterFactory",
    "PathConverter",
    "PatternConverter",
    "ScalarTypeConverter",
    "StringConverter",
    "StructuredConverter",
    "TypeAdapterPool",
    "TypeAdapterPools",
    "UUIDConverter",
    "YamlConverter",
    "default_type_converter",
]
