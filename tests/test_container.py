"""Tests for the dependency injection container."""

import logging
from typing import Annotated, Optional

import pytest

from confbind.config import CacheConfig, ConfbindConfig, MaterializationMode, MetadataStrategy
from confbind.container import Container
from confbind.declarations import Encrypted, Key, configuration
from confbind.errors import DecryptionError
from confbind.factory import DynamicConfigurationFactory, StaticConfigurationFactory
from confbind.model import ConventionMetadataExtractor, ExplicitMetadataExtractor
from confbind.processors import NoOpDecrypter
from confbind.testing import MockConfigurationSource, MockDecrypter


class DatabaseConfig:
    url: str
    password: Annotated[Optional[str], Encrypted()]


class VaultConfig:
    token: Annotated[Optional[str], Encrypted("vault")]


@configuration
class ExplicitConfig:
    url: Annotated[str, Key("jdbc")]


@pytest.fixture
def test_config():
    """Create a test configuration."""
    return ConfbindConfig.for_testing()


@pytest.fixture(autouse=True)
def reset_logger_level():
    """Undo the debug level set by debug configurations."""
    yield
    logging.getLogger("confbind").setLevel(logging.NOTSET)


class TestContainerInitialization:
    """Tests for container initialization."""

    def test_initialize_creates_components(self, test_config):
        """Test that initialize creates every component."""
        container = Container(test_config)

        assert not container.is_initialized

        container.initialize()

        assert container.is_initialized
        assert container.model_provider is not None
        assert container.type_converter is not None
        assert isinstance(container.factory, StaticConfigurationFactory)
        assert container.factory.model_provider is container.model_provider

    def test_initialize_is_idempotent(self, test_config):
        """Test that double initialization is safe."""
        container = Container(test_config)

        container.initialize()
        provider = container.model_provider

        container.initialize()

        assert container.model_provider is provider

    def test_access_before_initialize(self, test_config):
        """Test that components require initialization."""
        container = Container(test_config)

        for name in ("model_provider", "type_converter", "factory", "processors"):
            with pytest.raises(RuntimeError, match="Container not initialized"):
                getattr(container, name)

    def test_invalid_configuration(self):
        """Test that validation errors prevent initialization."""
        container = Container(ConfbindConfig(cache=CacheConfig(model_cache_size=0)))

        with pytest.raises(ValueError, match="Invalid confbind configuration: cache.model_cache_size"):
            container.initialize()
        assert not container.is_initialized

    def test_debug_sets_log_level(self, test_config):
        """Test that debug configurations enable debug logging."""
        Container(test_config).initialize()

        assert logging.getLogger("confbind").level == logging.DEBUG

    def test_cache_sizes(self, test_config):
        """Test that cache sizes are passed to the model provider."""
        container = Container(test_config)
        container.initialize()

        assert container.model_provider.cache_info["max_size"] == 16


class TestContainerWiring:
    """Tests for strategy, mode and processor selection."""

    def test_convention_strategy(self, test_config):
        """Test the default metadata strategy."""
        with Container(test_config) as container:
            assert type(container.model_provider.extractor) is ConventionMetadataExtractor

    def test_explicit_strategy(self, test_config):
        """Test the explicit metadata strategy."""
        test_config.metadata = MetadataStrategy.EXPLICIT

        with Container(test_config) as container:
            assert type(container.model_provider.extractor) is ExplicitMetadataExtractor
            config = container.create_configuration(ExplicitConfig, MockConfigurationSource({"jdbc": "x"}))

        assert config.url == "x"

    def test_dynamic_mode(self):
        """Test the dynamic materialization mode."""
        with Container(ConfbindConfig.for_testing(MaterializationMode.DYNAMIC)) as container:
            assert isinstance(container.factory, DynamicConfigurationFactory)

    def test_placeholder_processor_without_default_decrypter(self, test_config):
        """Test that the default provider is rejected when nothing decrypts it."""
        with Container(test_config) as container:
            processors = container.processors

            assert len(processors) == 1
            assert isinstance(processors[0].decrypter, NoOpDecrypter)

            with pytest.raises(DecryptionError, match="decryption is not supported"):
                container.create_configuration(
                    DatabaseConfig, MockConfigurationSource({"password": "enc:x"})
                )

    def test_default_decrypter(self, test_config):
        """Test a decrypter registered under the default provider."""
        decrypter = MockDecrypter()

        with Container(test_config, decrypters=[decrypter]) as container:
            assert [p.decrypter for p in container.processors] == [decrypter]
            config = container.create_configuration(
                DatabaseConfig, MockConfigurationSource({"url": "db", "password": "enc:terces"})
            )

        assert config.password == "secret"
        assert config.url == "db"

    def test_named_decrypter(self, test_config):
        """Test that other providers are chained before the placeholder."""
        vault = MockDecrypter("vault")

        with Container(test_config, decrypters=[vault]) as container:
            processors = container.processors
            config = container.create_configuration(
                VaultConfig, MockConfigurationSource({"token": MockDecrypter.encrypt("abc")})
            )

        assert [p.decrypter.name for p in processors] == ["vault", "default"]
        assert config.token == "abc"


class TestContainerUsage:
    """Tests for creating configurations through the container."""

    def test_source_required(self, test_config):
        """Test the source precondition."""
        with Container(test_config) as container:
            with pytest.raises(ValueError, match="source cannot be None"):
                container.create_configuration(DatabaseConfig, None)

    def test_log_lookups(self, test_config, caplog):
        """Test that lookups are logged when enabled."""
        test_config.log_lookups = True

        with Container(test_config) as container:
            with caplog.at_level(logging.INFO, logger="confbind.sources.base"):
                container.create_configuration(DatabaseConfig, MockConfigurationSource({"url": "db"}))

        assert "url" in caplog.text
        assert "'db'" in caplog.text

    def test_lookups_not_logged_by_default(self, caplog):
        """Test that lookups are silent by default."""
        with Container(ConfbindConfig()) as container:
            with caplog.at_level(logging.INFO, logger="confbind.sources.base"):
                container.create_configuration(DatabaseConfig, MockConfigurationSource({"url": "db"}))

        assert "'db'" not in caplog.text


class TestContainerShutdown:
    """Tests for container shutdown."""

    def test_shutdown_resets_state(self, test_config):
        """Test that shutdown releases every component."""
        container = Container(test_config)
        container.initialize()
        container.model_provider.get_configuration_model(DatabaseConfig)

        container.shutdown()

        assert not container.is_initialized
        with pytest.raises(RuntimeError, match="Container not initialized"):
            container.factory

    def test_shutdown_clears_model_cache(self, test_config):
        """Test that cached models are dropped."""
        container = Container(test_config)
        container.initialize()
        provider = container.model_provider
        provider.get_configuration_model(DatabaseConfig)

        container.shutdown()

        assert provider.cache_info["models"] == 0

    def test_shutdown_without_initialize(self, test_config):
        """Test that shutting down an idle container is a no-op."""
        Container(test_config).shutdown()

    def test_context_manager(self, test_config):
        """Test that the container can be used with a with statement."""
        with Container(test_config) as container:
            assert container.is_initialized

        assert not container.is_initialized

    def test_reinitialize(self, test_config):
        """Test that a container can be initialized again after shutdown."""
        container = Container(test_config)
        container.initialize()
        container.shutdown()
        container.initialize()

        assert container.is_initialized
