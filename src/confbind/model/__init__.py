"""Configuration model: schema extraction and caching."""

from .convention import ConventionMetadataExtractor
from .explicit import ExplicitMetadataExtractor
from .extractor import IMetadataExtractor, PropertyKind
from .members import MembersProvider, PropertyMember
from .provider import ConfigurationModelProvider, create_model_provider
from .types import (
    ConfigurationModel,
    PropertyModel,
    SubConfigurationListPropertyModel,
    SubConfigurationPropertyModel,
    ValuePropertyModel,
)

__all__ = [
    "ConfigurationModel",
    "ConfigurationModelProvider",
    "ConventionMetadataExtractor",
    "ExplicitMetadataExtractor",
    "IMetadataExtractor",
    "MembersProvider",
    "PropertyKind",
    "PropertyMember",
    "PropertyModel",
    "SubConfigurationListPropertyModel",
    "SubConfigurationPropertyModel",
    "ValuePropertyModel",
    "create_model_provider",
]
