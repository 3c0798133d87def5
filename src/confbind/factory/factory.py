"""Configuration factories: static and dynamic materialization.

A factory turns a configuration shape and a source into an instance of the
shape. The static factory resolves every property once; the dynamic factory
resolves on every read so that changes of the source are observed.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence, TypeVar

from ..converters import default_type_converter
from ..errors import InvalidSchemaError, ValueFormatError
from ..interfaces import IConfigurationSource, ITypeConverter, IValueProcessor
from ..model import (
    ConfigurationModelProvider,
    SubConfigurationListPropertyModel,
    SubConfigurationPropertyModel,
    ValuePropertyModel,
)
from ..resolution import ConfigurationValueProvider, PropertyMetadata
from ..utils import require, type_name
from .initializer import ConfigurationInitializer
from .instances import (
    DynamicConfigurationInstance,
    InstanceClassFactory,
    StaticConfigurationInstance,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AbstractConfigurationFactory(ABC):
    """Shared construction logic of the configuration factories.

    Args:
        model_provider: Provides configuration models; a convention based
            provider when omitted.
        type_converter: Converter used by properties declaring none; the
            default converter chain when omitted.
        value_processors: Processors applied to every raw value.
    """

    def __init__(
        self,
        model_provider: Optional[ConfigurationModelProvider] = None,
        type_converter: Optional[ITypeConverter] = None,
        value_processors: Sequence[IValueProcessor] = (),
    ):
        self.model_provider = model_provider or ConfigurationModelProvider()
        self.type_converter = type_converter or default_type_converter()
        self.value_provider = ConfigurationValueProvider(value_processors)
        self._classes = InstanceClassFactory(self._instance_base())

    def create_configuration(self, shape: type[T], source: IConfigurationSource) -> T:
        """Create an instance of a configuration shape bound to ``source``.

        Raises:
            ValueError: If ``shape`` or ``source`` is None.
            InvalidSchemaError: If the shape is abstract or malformed.
            ValueFormatError: If a value cannot be converted (static mode).
        """
        require(shape, "shape")
        require(source, "source")

        model = self.model_provider.get_configuration_model(shape)
        if model.is_abstract:
            raise InvalidSchemaError(
                f"{type_name(shape)} is an abstract configuration and cannot be instantiated"
            )
        instance = self._create(ConfigurationInitializer.for_model(model), source)
        logger.debug("Created %s configuration of %s", self.mode, type_name(shape))
        return instance

    @property
    @abstractmethod
    def mode(self) -> str:
        pass

    @abstractmethod
    def _instance_base(self) -> type:
        pass

    @abstractmethod
    def _create(self, initializer: ConfigurationInitializer, source: IConfigurationSource) -> Any:
        pass

    def _resolve(self, metadata: PropertyMetadata, source: IConfigurationSource) -> Any:
        return self.value_provider.get_value(self.type_converter, source, metadata).get_or_none()

    def _resolve_size(self, prop: SubConfigurationListPropertyModel, metadata: PropertyMetadata,
                      source: IConfigurationSource) -> int:
        size = self._resolve(metadata, source)
        if size is None:
            return prop.default_size
        if size < 0:
            raise ValueFormatError(f"Size of '{prop.name}' cannot be negative, got {size}")
        return size


# =============================================================================
# Static
# =============================================================================


class StaticConfigurationFactory(AbstractConfigurationFactory):
    """Creates immutable instances holding values resolved at construction.

    Absent and null values become None, sub-configuration lists become
    tuples, and the source is never consulted after construction.
    """

    @property
    def mode(self) -> str:
        return "static"

    def _instance_base(self) -> type:
        return StaticConfigurationInstance

    def _create(self, initializer: ConfigurationInitializer, source: IConfigurationSource) -> Any:
        values: dict[str, Any] = {}
        for prop in initializer.model.properties:
            if isinstance(prop, ValuePropertyModel):
                values[prop.name] = self._resolve(initializer.value_metadata(prop), source)
            elif isinstance(prop, SubConfigurationPropertyModel):
                values[prop.name] = self._create(initializer.sub_configuration(prop), source)
            elif isinstance(prop, SubConfigurationListPropertyModel):
                size = self._resolve_size(prop, initializer.list_size_metadata(prop), source)
                values[prop.name] = tuple(
                    self._create(initializer.list_item(prop, index), source) for index in range(size)
                )
        return self._classes.create(initializer.model, values)


# =============================================================================
# Dynamic
# =============================================================================


class _DynamicList:
    """Live sub-configuration list: size re-resolved on every read."""

    def __init__(
        self,
        factory: "DynamicConfigurationFactory",
        initializer: ConfigurationInitializer,
        prop: SubConfigurationListPropertyModel,
        source: IConfigurationSource,
    ):
        self._factory = factory
        self._initializer = initializer
        self._prop = prop
        self._source = source
        self._size_metadata = initializer.list_size_metadata(prop)
        self._items: dict[int, Any] = {}
        self._lock = threading.Lock()

    def __call__(self) -> tuple:
        size = self._factory._resolve_size(self._prop, self._size_metadata, self._source)
        return tuple(self._item(index) for index in range(size))

    def _item(self, index: int) -> Any:
        with self._lock:
            item = self._items.get(index)
            if item is None:
                item = self._factory._create(self._initializer.list_item(self._prop, index), self._source)
                self._items[index] = item
            return item


class _DynamicState:
    """Per-instance readers, one per property."""

    __slots__ = ("_readers",)

    def __init__(self, readers: dict[str, Callable[[], Any]]):
        self._readers = readers

    def get(self, name: str) -> Any:
        return self._readers[name]()


class DynamicConfigurationFactory(AbstractConfigurationFactory):
    """Creates instances that resolve every property read against the source.

    Sub-configurations are created once with their parent. Elements of
    sub-configuration lists are created on first access and reused, while
    the list size is looked up again on every read.
    """

    @property
    def mode(self) -> str:
        return "dynamic"

    def _instance_base(self) -> type:
        return DynamicConfigurationInstance

    def _create(self, initializer: ConfigurationInitializer, source: IConfigurationSource) -> Any:
        readers: dict[str, Callable[[], Any]] = {}
        for prop in initializer.model.properties:
            if isinstance(prop, ValuePropertyModel):
                readers[prop.name] = self._value_reader(initializer.value_metadata(prop), source)
            elif isinstance(prop, SubConfigurationPropertyModel):
                nested = self._create(initializer.sub_configuration(prop), source)
                readers[prop.name] = lambda nested=nested: nested
            elif isinstance(prop, SubConfigurationListPropertyModel):
                readers[prop.name] = _DynamicList(self, initializer, prop, source)
        return self._classes.create(initializer.model, _DynamicState(readers))

    def _value_reader(self, metadata: PropertyMetadata, source: IConfigurationSource) -> Callable[[], Any]:
        def read():
            return self._resolve(metadata, source)

        return read


def create_configuration_factory(
    dynamic: bool = False,
    model_provider: Optional[ConfigurationModelProvider] = None,
    type_converter: Optional[ITypeConverter] = None,
    value_processors: Sequence[IValueProcessor] = (),
) -> AbstractConfigurationFactory:
    """Create a static or dynamic configuration factory."""
    factory_class = DynamicConfigurationFactory if dynamic else StaticConfigurationFactory
    return factory_class(model_provider, type_converter, value_processors)
