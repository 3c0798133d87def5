"""Option classes of the confbind configuration."""

from dataclasses import dataclass
from enum import Enum

from ..converters.structured import DEFAULT_MAX_POOLS, DEFAULT_POOL_SIZE
from ..model.provider import DEFAULT_MODEL_CACHE_SIZE


class MetadataStrategy(Enum):
    """How configuration shapes are read."""
    CONVENTION = "convention"
    EXPLICIT = "explicit"


class MaterializationMode(Enum):
    """How configuration instances resolve their values."""
    STATIC = "static"
    DYNAMIC = "dynamic"


@dataclass
class CacheConfig:
    """Cache and pool sizes.

    Attributes:
        model_cache_size: Maximum number of cached configuration models
        adapter_pools: Maximum number of per-type TypeAdapter pools
        adapter_pool_size: TypeAdapters kept per type
    """
    model_cache_size: int = DEFAULT_MODEL_CACHE_SIZE
    adapter_pools: int = DEFAULT_MAX_POOLS
    adapter_pool_size: int = DEFAULT_POOL_SIZE


@dataclass
class ConverterConfig:
    """Defaults of the converter chain.

    Attributes:
        compact_json: Collections use the compact notation unless a property
            asks for ``format=json``
        escape_strings: Strings are Java-escaped unless a property disables it
    """
    compact_json: bool = True
    escape_strings: bool = True
