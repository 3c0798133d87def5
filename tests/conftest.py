"""Pytest fixtures for confbind tests."""

import pytest

from confbind.converters import TypeAdapterPools, default_type_converter
from confbind.factory import DynamicConfigurationFactory, StaticConfigurationFactory
from confbind.model import ConfigurationModelProvider, create_model_provider
from confbind.testing import MockConfigurationSource, MockDecrypter


@pytest.fixture
def source():
    """Provide an empty recording source."""
    return MockConfigurationSource()


@pytest.fixture
def pools():
    """Provide private TypeAdapter pools so tests don't share adapters."""
    return TypeAdapterPools(max_pools=8, pool_size=2)


@pytest.fixture
def type_converter(pools):
    """Provide the default converter chain."""
    return default_type_converter(pools=pools)


@pytest.fixture
def model_provider():
    """Provide a convention based model provider."""
    return ConfigurationModelProvider()


@pytest.fixture
def explicit_provider():
    """Provide an explicit model provider."""
    return create_model_provider(explicit=True)


@pytest.fixture
def static_factory(model_provider, type_converter):
    """Provide a static factory."""
    return StaticConfigurationFactory(model_provider, type_converter)


@pytest.fixture
def dynamic_factory(model_provider, type_converter):
    """Provide a dynamic factory."""
    return DynamicConfigurationFactory(model_provider, type_converter)


@pytest.fixture
def decrypter():
    """Provide a mock decrypter registered under the default provider."""
    return MockDecrypter()
