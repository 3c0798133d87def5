"""Configuration of confbind itself.

Strongly-typed options that can be loaded from:
- Environment variables
- YAML files
- Dictionaries or programmatic construction
"""

from .options import CacheConfig, ConverterConfig, MaterializationMode, MetadataStrategy
from .system import ConfbindConfig

__all__ = [
    "CacheConfig",
    "ConfbindConfig",
    "ConverterConfig",
    "MaterializationMode",
    "MetadataStrategy",
]
