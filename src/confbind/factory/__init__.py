"""Configuration instance factories."""

from .factory import (
    AbstractConfigurationFactory,
    DynamicConfigurationFactory,
    StaticConfigurationFactory,
    create_configuration_factory,
)
from .initializer import ConfigurationInitializer
from .instances import (
    ConfigurationInstance,
    DynamicConfigurationInstance,
    InstanceClassFactory,
    StaticConfigurationInstance,
    as_dict,
    configuration_model,
)

__all__ = [
    "AbstractConfigurationFactory",
    "ConfigurationInitializer",
    "ConfigurationInstance",
    "DynamicConfigurationFactory",
    "DynamicConfigurationInstance",
    "InstanceClassFactory",
    "StaticConfigurationFactory",
    "StaticConfigurationInstance",
    "as_dict",
    "configuration_model",
    "create_configuration_factory",
]
