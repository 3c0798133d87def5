"""confbind: bind configuration sources to typed configuration shapes.

A configuration shape is a plain class whose annotated attributes are its
properties. confbind builds a cached model of the shape, computes the
candidate keys of every property and materializes instances whose values
come from a configuration source:

    class DatabaseConfig:
        url: str
        pool_size: int = 10
        timeout: timedelta

    factory = StaticConfigurationFactory()
    config = factory.create_configuration(
        DatabaseConfig, YamlConfigurationSource.from_file("app.yaml")
    )
    config.pool_size  # -> 10 unless the file says otherwise

Usage with the container:
    from confbind import Container, ConfbindConfig

    container = Container(ConfbindConfig.from_env())
    container.initialize()
    config = container.create_configuration(DatabaseConfig, source)
"""

__version__ = "0.1.0"

from .attributes import Attributes
from .config import ConfbindConfig, MaterializationMode, MetadataStrategy
from .container import Container
from .converters import ChainedTypeConverter, default_type_converter
from .declarations import (
    Converter,
    Default,
    DefaultSize,
    Defaults,
    Description,
    Encrypted,
    FallbackKey,
    IgnoreKey,
    IgnorePrefix,
    Key,
    Meta,
    abstract_configuration,
    configuration,
)
from .errors import (
    ConfigurationError,
    CycleDetectedError,
    DecryptionError,
    DuplicatePropertyError,
    InvalidSchemaError,
    ModelBuildError,
    NoApplicableConverterError,
    UnrecognizedMemberError,
    ValueFormatError,
)
from .factory import (
    DynamicConfigurationFactory,
    StaticConfigurationFactory,
    as_dict,
    create_configuration_factory,
)
from .interfaces import (
    IConfigurationSource,
    ITypeConverter,
    IValueDecrypter,
    IValueProcessor,
    OptionalValue,
)
from .keys import KeyGenerator, candidate_keys
from .model import ConfigurationModelProvider, create_model_provider
from .processors import NoOpDecrypter, ValueDecryptingProcessor
from .sources import (
    EnvironmentConfigurationSource,
    JsonConfigurationSource,
    MapConfigurationSource,
    MultiConfigurationSource,
    PropertiesConfigurationSource,
    WritableMapConfigurationSource,
    YamlConfigurationSource,
)

__all__ = [
    # Declarations
    "Converter",
    "Default",
    "DefaultSize",
    "Defaults",
    "Description",
    "Encrypted",
    "FallbackKey",
    "IgnoreKey",
    "IgnorePrefix",
    "Key",
    "Meta",
    "abstract_configuration",
    "configuration",
    # Errors
    "ConfigurationError",
    "CycleDetectedError",
    "DecryptionError",
    "DuplicatePropertyError",
    "InvalidSchemaError",
    "ModelBuildError",
    "NoApplicableConverterError",
    "UnrecognizedMemberError",
    "ValueFormatError",
    # Interfaces
    "IConfigurationSource",
    "ITypeConverter",
    "IValueDecrypter",
    "IValueProcessor",
    "OptionalValue",
    "Attributes",
    # Model and keys
    "ConfigurationModelProvider",
    "KeyGenerator",
    "candidate_keys",
    "create_model_provider",
    # Conversion and processing
    "ChainedTypeConverter",
    "NoOpDecrypter",
    "ValueDecryptingProcessor",
    "default_type_converter",
    # Sources
    "EnvironmentConfigurationSource",
    "JsonConfigurationSource",
    "MapConfigurationSource",
    "MultiConfigurationSource",
    "PropertiesConfigurationSource",
    "WritableMapConfigurationSource",
    "YamlConfigurationSource",
    # Factories
    "DynamicConfigurationFactory",
    "StaticConfigurationFactory",
    "as_dict",
    "create_configuration_factory",
    # Wiring
    "ConfbindConfig",
    "Container",
    "MaterializationMode",
    "MetadataStrategy",
]
