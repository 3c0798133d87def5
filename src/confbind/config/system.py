"""Library-wide configuration."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from .options import CacheConfig, ConverterConfig, MaterializationMode, MetadataStrategy


def _enum_value(enum_type, value: Any, name: str):
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(str(value).lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValueError(f"Invalid {name} '{value}', expected one of: {allowed}") from None


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("true", "1", "yes")


@dataclass
class ConfbindConfig:
    """Complete confbind configuration.

    Can be loaded from environment variables, a YAML file, a dictionary or
    constructed programmatically.

    Attributes:
        metadata: Strategy reading configuration shapes
        mode: Static or dynamic configuration instances
        cache: Cache and pool sizes
        converters: Defaults of the converter chain
        log_lookups: Log every resolved key at INFO level
        debug: Enable debug logging
    """
    metadata: MetadataStrategy = MetadataStrategy.CONVENTION
    mode: MaterializationMode = MaterializationMode.STATIC
    cache: CacheConfig = field(default_factory=CacheConfig)
    converters: ConverterConfig = field(default_factory=ConverterConfig)
    log_lookups: bool = False
    debug: bool = False

    @classmethod
    def from_env(cls, prefix: str = "CONFBIND") -> "ConfbindConfig":
        """Load configuration from environment variables.

        Environment variables:
            {prefix}_METADATA: convention|explicit
            {prefix}_MODE: static|dynamic
            {prefix}_MODEL_CACHE_SIZE: Integer
            {prefix}_ADAPTER_POOLS: Integer
            {prefix}_ADAPTER_POOL_SIZE: Integer
            {prefix}_COMPACT_JSON: true|false
            {prefix}_ESCAPE_STRINGS: true|false
            {prefix}_LOG_LOOKUPS: true|false
            {prefix}_DEBUG: true|false

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        def get(key: str, default: str = None) -> Optional[str]:
            return os.environ.get(f"{prefix}_{key}", default)

        def get_bool(key: str, default: bool = False) -> bool:
            val = get(key)
            if val is None:
                return default
            return _parse_bool(val)

        def get_int(key: str, default: int) -> int:
            val = get(key)
            return int(val) if val else default

        defaults = CacheConfig()
        cache = CacheConfig(
            model_cache_size=get_int("MODEL_CACHE_SIZE", defaults.model_cache_size),
            adapter_pools=get_int("ADAPTER_POOLS", defaults.adapter_pools),
            adapter_pool_size=get_int("ADAPTER_POOL_SIZE", defaults.adapter_pool_size),
        )

        converters = ConverterConfig(
            compact_json=get_bool("COMPACT_JSON", True),
            escape_strings=get_bool("ESCAPE_STRINGS", True),
        )

        return cls(
            metadata=_enum_value(MetadataStrategy, get("METADATA", "convention"), "metadata strategy"),
            mode=_enum_value(MaterializationMode, get("MODE", "static"), "materialization mode"),
            cache=cache,
            converters=converters,
            log_lookups=get_bool("LOG_LOOKUPS", False),
            debug=get_bool("DEBUG", False),
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ConfbindConfig":
        """Load configuration from a YAML file; a missing file yields the defaults."""
        path = Path(path).expanduser()
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "ConfbindConfig":
        """Create configuration from a dictionary.

        Example:
            metadata: explicit
            mode: dynamic
            cache:
              model_cache_size: 128
            converters:
              compact_json: false
        """
        cache_data = data.get("cache", {}) or {}
        converter_data = data.get("converters", {}) or {}

        cache_defaults = CacheConfig()
        cache = CacheConfig(
            model_cache_size=int(cache_data.get("model_cache_size", cache_defaults.model_cache_size)),
            adapter_pools=int(cache_data.get("adapter_pools", cache_defaults.adapter_pools)),
            adapter_pool_size=int(cache_data.get("adapter_pool_size", cache_defaults.adapter_pool_size)),
        )

        converters = ConverterConfig(
            compact_json=_parse_bool(converter_data.get("compact_json", True)),
            escape_strings=_parse_bool(converter_data.get("escape_strings", True)),
        )

        return cls(
            metadata=_enum_value(MetadataStrategy, data.get("metadata", "convention"), "metadata strategy"),
            mode=_enum_value(MaterializationMode, data.get("mode", "static"), "materialization mode"),
            cache=cache,
            converters=converters,
            log_lookups=_parse_bool(data.get("log_lookups", False)),
            debug=_parse_bool(data.get("debug", False)),
        )

    @classmethod
    def for_testing(cls, mode: MaterializationMode = MaterializationMode.STATIC) -> "ConfbindConfig":
        """Create a configuration suitable for testing.

        Uses small caches so that eviction paths are exercised.
        """
        return cls(
            mode=mode,
            cache=CacheConfig(model_cache_size=16, adapter_pools=8, adapter_pool_size=2),
            debug=True,
        )

    def validate(self) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if self.cache.model_cache_size <= 0:
            errors.append(f"cache.model_cache_size must be positive, got {self.cache.model_cache_size}")
        if self.cache.adapter_pools <= 0:
            errors.append(f"cache.adapter_pools must be positive, got {self.cache.adapter_pools}")
        if self.cache.adapter_pool_size <= 0:
            errors.append(f"cache.adapter_pool_size must be positive, got {self.cache.adapter_pool_size}")

        if not isinstance(self.metadata, MetadataStrategy):
            errors.append(f"metadata must be a MetadataStrategy, got {self.metadata!r}")
        if not isinstance(self.mode, MaterializationMode):
            errors.append(f"mode must be a MaterializationMode, got {self.mode!r}")

        return errors
