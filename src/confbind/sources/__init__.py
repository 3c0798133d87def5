"""Configuration sources."""

from .base import (
    LoggingConfigurationSource,
    MapConfigurationSource,
    MultiConfigurationSource,
    WritableMapConfigurationSource,
)
from .environment import EnvironmentConfigurationSource, environment_variable_name
from .files import (
    ConfigurationFileError,
    JsonConfigurationSource,
    PropertiesConfigurationSource,
    YamlConfigurationSource,
    flatten,
    load_file_source,
    parse_properties,
)

__all__ = [
    "ConfigurationFileError",
    "EnvironmentConfigurationSource",
    "JsonConfigurationSource",
    "LoggingConfigurationSource",
    "MapConfigurationSource",
    "MultiConfigurationSource",
    "PropertiesConfigurationSource",
    "WritableMapConfigurationSource",
    "YamlConfigurationSource",
    "environment_variable_name",
    "flatten",
    "load_file_source",
    "parse_properties",
]
