"""Tests for ConfigurationModelProvider."""

import threading
from typing import Annotated, Optional

import pytest

from confbind.converters import StringConverter
from confbind.declarations import Converter, Default, Defaults, DefaultSize, Key, configuration
from confbind.errors import (
    CycleDetectedError,
    DuplicatePropertyError,
    InvalidSchemaError,
    UnrecognizedMemberError,
)
from confbind.interfaces import OptionalValue
from confbind.model import (
    ConfigurationModelProvider,
    SubConfigurationListPropertyModel,
    SubConfigurationPropertyModel,
    ValuePropertyModel,
)


class CycleA:
    b: "CycleB"


class CycleB:
    a: CycleA


class SelfRef:
    name: str
    child: "Optional[SelfRef]"


class PortAsInt:
    port: int


class PortAsStr:
    port: str


class Clash(PortAsInt, PortAsStr):
    pass


class OptionalPortConfig:
    port: Optional[int]


class RequiredPortConfig(OptionalPortConfig):
    port: int


class ServerConfig:
    host: str
    port: int = 8080


class AppConfig:
    """Application settings."""
    name: Annotated[str, Key("name", "app_name", "name")]
    server: ServerConfig
    servers: Annotated[list[ServerConfig], Defaults(host="a"), Defaults(host="b")]
    mirrors: Annotated[list[ServerConfig], DefaultSize(4)]


class AbstractBaseConfig:
    name: str


@configuration
class MissingKey:
    host: str


@configuration(key="db")
class ExplicitDatabase:
    url: Annotated[str, Key(), Default("jdbc:h2:mem")]


@pytest.fixture
def provider():
    """Provide a convention model provider."""
    return ConfigurationModelProvider()


class TestModelBuilding:
    """Tests for the structure of built models."""

    def test_value_property(self, provider):
        """Test that value properties carry keys and defaults."""
        model = provider.get_configuration_model(ServerConfig)
        host, port = model.properties

        assert isinstance(host, ValuePropertyModel)
        assert host.keys == ("host",)
        assert port.type is int
        assert port.default_value == OptionalValue.of("8080")

    def test_keys_are_deduplicated(self, provider):
        """Test that repeated keys collapse in order."""
        model = provider.get_configuration_model(AppConfig)

        assert model.get_property("name").keys == ("name", "app_name")

    def test_sub_configuration(self, provider):
        """Test that nested shapes are linked to their own model."""
        model = provider.get_configuration_model(AppConfig)
        server = model.get_property("server")

        assert isinstance(server, SubConfigurationPropertyModel)
        assert server.model is provider.get_configuration_model(ServerConfig)
        assert server.prefixes == ("server",)

    def test_sub_configuration_lists(self, provider):
        """Test list defaults and size keys."""
        model = provider.get_configuration_model(AppConfig)
        servers = model.get_property("servers")
        mirrors = model.get_property("mirrors")

        assert isinstance(servers, SubConfigurationListPropertyModel)
        assert servers.default_size == 2
        assert servers.default_values == ({"host": "a"}, {"host": "b"})
        assert servers.size_keys == ("servers.size",)
        assert mirrors.default_size == 4
        assert mirrors.size_property.default_value == OptionalValue.of("4")

    def test_shape_metadata(self, provider):
        """Test description, abstract flag and prefixes."""
        assert provider.get_configuration_model(AppConfig).description == "Application settings."
        assert provider.get_configuration_model(AbstractBaseConfig).is_abstract
        assert not provider.get_configuration_model(AppConfig).is_abstract

    def test_optional_narrowed_in_subclass(self, provider):
        """Test that a required redeclaration of an optional property is not a duplicate."""
        model = provider.get_configuration_model(RequiredPortConfig)

        assert [prop.name for prop in model.properties] == ["port"]
        assert model.get_property("port").type is int

    def test_explicit_provider(self, explicit_provider):
        """Test the explicit strategy end to end."""
        model = explicit_provider.get_configuration_model(ExplicitDatabase)

        assert model.prefixes == ("db",)
        assert model.get_property("url").default_value == OptionalValue.of("jdbc:h2:mem")


class TestModelErrors:
    """Tests for build-time errors."""

    def test_none_shape(self, provider):
        """Test the precondition."""
        with pytest.raises(ValueError, match="shape cannot be None"):
            provider.get_configuration_model(None)

    def test_not_a_configuration(self, provider):
        """Test that plain types are rejected."""
        with pytest.raises(InvalidSchemaError, match="int is not a configuration type"):
            provider.get_configuration_model(int)

    def test_cycle(self, provider):
        """Test that mutually recursive shapes are rejected with their path."""
        with pytest.raises(CycleDetectedError, match="detected for CycleA via CycleA.b -> CycleB.a") as exc_info:
            provider.get_configuration_model(CycleA)

        assert exc_info.value.path == ("CycleA.b", "CycleB.a")

    def test_self_reference(self, provider):
        """Test that a shape cannot contain itself, even optionally."""
        with pytest.raises(CycleDetectedError, match="SelfRef.child"):
            provider.get_configuration_model(SelfRef)

    def test_duplicate_property(self, provider):
        """Test that clashing inherited declarations are reported."""
        with pytest.raises(DuplicatePropertyError, match="Clash configuration type has duplicated property 'port'") as exc_info:
            provider.get_configuration_model(Clash)

        assert exc_info.value.property_name == "port"
        assert len(exc_info.value.members) == 2

    def test_unrecognized_member(self, explicit_provider):
        """Test that explicit shapes need Key on every value property."""
        with pytest.raises(UnrecognizedMemberError, match=r"Unable to recognize MissingKey.host \(str\)"):
            explicit_provider.get_configuration_model(MissingKey)

    def test_inapplicable_converter(self, provider):
        """Test that an explicit converter must handle the property type."""

        class Bad:
            port: Annotated[int, Converter(StringConverter)]

        with pytest.raises(InvalidSchemaError, match="Converter StringConverter declared on .*Bad.port cannot convert int"):
            provider.get_configuration_model(Bad)

    def test_sub_configuration_with_assigned_value(self, provider):
        """Test that nested configurations cannot have class-level defaults."""

        class Bad:
            server: ServerConfig = None

        with pytest.raises(InvalidSchemaError, match="sub-configuration property and cannot have a class-level default"):
            provider.get_configuration_model(Bad)

    def test_errors_are_not_cached(self, provider):
        """Test that a failing shape fails every time and is never stored."""
        for _ in range(2):
            with pytest.raises(DuplicatePropertyError):
                provider.get_configuration_model(Clash)

        assert provider.cache_info["models"] == 0

    def test_invalid_cache_size(self):
        """Test constructor validation."""
        with pytest.raises(ValueError, match="cache_size must be positive"):
            ConfigurationModelProvider(cache_size=0)


class TestModelCache:
    """Tests for caching and concurrency."""

    def test_idempotent(self, provider):
        """Test that the same model instance is returned on every call."""
        assert provider.get_configuration_model(AppConfig) is provider.get_configuration_model(AppConfig)

    def test_structurally_equal_shapes_get_distinct_models(self, provider):
        """Test that models are keyed by shape identity."""

        class First:
            host: str

        class Second:
            host: str

        assert provider.get_configuration_model(First) is not provider.get_configuration_model(Second)

    def test_lru_eviction(self):
        """Test that the least recently used model is evicted."""
        provider = ConfigurationModelProvider(cache_size=1)
        first = provider.get_configuration_model(PortAsInt)
        provider.get_configuration_model(PortAsStr)

        assert provider.cache_info["models"] == 1
        assert provider.cache_info["max_size"] == 1
        assert provider.get_configuration_model(PortAsInt) is not first

    def test_type_checks_are_bounded(self):
        """Test that answers for non-configuration types are evicted too."""
        provider = ConfigurationModelProvider(cache_size=2)

        for shape in (int, str, float, bytes, ServerConfig):
            provider.is_configuration_type(shape)

        assert provider.cache_info["type_checks"] == 2
        assert provider.is_configuration_type(ServerConfig)
        assert not provider.is_configuration_type(int)

    def test_clear_cache(self, provider):
        """Test that clearing forces a rebuild."""
        first = provider.get_configuration_model(ServerConfig)

        provider.clear_cache()

        assert provider.cache_info["models"] == 0
        assert provider.get_configuration_model(ServerConfig) is not first

    def test_concurrent_callers_converge(self, provider):
        """Test that racing threads all observe one canonical model."""
        thread_count = 8
        barrier = threading.Barrier(thread_count)
        results = []
        lock = threading.Lock()

        def build():
            barrier.wait()
            model = provider.get_configuration_model(AppConfig)
            with lock:
                results.append(model)

        threads = [threading.Thread(target=build) for _ in range(thread_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == thread_count
        assert all(model is results[0] for model in results)
