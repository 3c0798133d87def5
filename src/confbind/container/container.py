"""Wiring of the configuration binding components."""

import logging
from typing import Optional, Sequence, TypeVar

from ..config import ConfbindConfig, MaterializationMode, MetadataStrategy
from ..converters import ChainedTypeConverter, TypeAdapterPools, default_type_converter
from ..declarations import DEFAULT_ENCRYPTION_PROVIDER
from ..factory import AbstractConfigurationFactory, create_configuration_factory
from ..interfaces import IConfigurationSource, IValueDecrypter, IValueProcessor
from ..model import ConfigurationModelProvider, create_model_provider
from ..processors import NoOpDecrypter, ValueDecryptingProcessor
from ..sources import LoggingConfigurationSource
from ..utils import require

logger = logging.getLogger(__name__)

T = TypeVar('T')

_NOT_INITIALIZED = "Container not initialized. Call initialize() first."


class Container:
    """Dependency injection container.

    Builds the model provider, converter chain, value processors and
    configuration factory described by a ``ConfbindConfig`` and hands them
    to consumers.

    Usage:
        container = Container(ConfbindConfig.from_env())
        container.initialize()

        config = container.create_configuration(AppConfig, source)

        container.shutdown()

    Args:
        config: Library configuration.
        decrypters: Decrypters of encrypted values, one processor each. Values
            tagged with the default provider are rejected unless one of them
            is registered under that name.
    """

    def __init__(self, config: ConfbindConfig, decrypters: Sequence[IValueDecrypter] = ()):
        self.config = config
        self._decrypters = list(decrypters)
        self._model_provider: Optional[ConfigurationModelProvider] = None
        self._pools: Optional[TypeAdapterPools] = None
        self._type_converter: Optional[ChainedTypeConverter] = None
        self._processors: list[IValueProcessor] = []
        self._factory: Optional[AbstractConfigurationFactory] = None
        self._initialized = False

    def initialize(self) -> None:
        """Create every component.

        Raises:
            ValueError: If the configuration is invalid.
        """
        if self._initialized:
            return

        errors = self.config.validate()
        if errors:
            raise ValueError("Invalid confbind configuration: " + "; ".join(errors))

        if self.config.debug:
            logging.getLogger("confbind").setLevel(logging.DEBUG)

        logger.info(
            f"Initializing container: {self.config.metadata.value} metadata, {self.config.mode.value} mode"
        )

        self._model_provider = create_model_provider(
            explicit=self.config.metadata == MetadataStrategy.EXPLICIT,
            cache_size=self.config.cache.model_cache_size,
        )

        self._pools = TypeAdapterPools(self.config.cache.adapter_pools, self.config.cache.adapter_pool_size)
        self._type_converter = default_type_converter(
            compact=self.config.converters.compact_json,
            escape=self.config.converters.escape_strings,
            pools=self._pools,
        )

        self._processors = self._create_processors()

        self._factory = create_configuration_factory(
            dynamic=self.config.mode == MaterializationMode.DYNAMIC,
            model_provider=self._model_provider,
            type_converter=self._type_converter,
            value_processors=self._processors,
        )

        self._initialized = True
        logger.info("Container initialized successfully")

    def shutdown(self) -> None:
        """Release caches and pools."""
        if not self._initialized:
            return

        logger.info("Shutting down container")

        self._model_provider.clear_cache()
        self._pools.clear()
        self._factory = None
        self._type_converter = None
        self._model_provider = None
        self._pools = None
        self._processors = []

        self._initialized = False
        logger.info("Container shutdown complete")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def model_provider(self) -> ConfigurationModelProvider:
        """Get the configuration model provider."""
        if self._model_provider is None:
            raise RuntimeError(_NOT_INITIALIZED)
        return self._model_provider

    @property
    def type_converter(self) -> ChainedTypeConverter:
        """Get the converter chain."""
        if self._type_converter is None:
            raise RuntimeError(_NOT_INITIALIZED)
        return self._type_converter

    @property
    def processors(self) -> list[IValueProcessor]:
        """Get the value processors, in application order."""
        if not self._initialized:
            raise RuntimeError(_NOT_INITIALIZED)
        return list(self._processors)

    @property
    def factory(self) -> AbstractConfigurationFactory:
        """Get the configuration factory."""
        if self._factory is None:
            raise RuntimeError(_NOT_INITIALIZED)
        return self._factory

    def create_configuration(self, shape: type[T], source: IConfigurationSource) -> T:
        """Create a configuration instance with the configured factory."""
        require(source, "source")
        if self.config.log_lookups:
            source = LoggingConfigurationSource(source)
        return self.factory.create_configuration(shape, source)

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    def _create_processors(self) -> list[IValueProcessor]:
        """Create one decrypting processor per decrypter.

        A placeholder rejecting values of the default provider is appended
        when no decrypter claims that name.
        """
        processors: list[IValueProcessor] = [ValueDecryptingProcessor(d) for d in self._decrypters]
        if not any(d.name == DEFAULT_ENCRYPTION_PROVIDER for d in self._decrypters):
            processors.append(ValueDecryptingProcessor(NoOpDecrypter()))
        return processors
