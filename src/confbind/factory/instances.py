"""Generated configuration instance classes.

For every configuration shape the factory derives a subclass (built with the
shape's own metaclass) that defines one read-only property per model
property. Members the shape implements itself are inherited untouched.
Instances are created without calling the shape's ``__init__``.
"""

import threading
from typing import Any, Callable, Optional

from ..model import ConfigurationModel, SubConfigurationListPropertyModel, SubConfigurationPropertyModel
from ..utils import require

MODEL_ATTRIBUTE = "_confbind_model"
STATE_ATTRIBUTE = "_confbind_state"


class ConfigurationInstance:
    """Base of every generated configuration class."""

    __slots__ = ()

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Configuration property '{name}' is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Configuration property '{name}' is read-only")


class StaticConfigurationInstance(ConfigurationInstance):
    """Instance holding values resolved once, compared by value."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StaticConfigurationInstance):
            return NotImplemented
        own_model = getattr(self, MODEL_ATTRIBUTE)
        other_model = getattr(other, MODEL_ATTRIBUTE)
        return own_model.type is other_model.type and getattr(self, STATE_ATTRIBUTE) == getattr(other, STATE_ATTRIBUTE)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    def __hash__(self) -> int:
        return hash((getattr(self, MODEL_ATTRIBUTE).type, tuple(getattr(self, STATE_ATTRIBUTE))))

    def __repr__(self) -> str:
        values = getattr(self, STATE_ATTRIBUTE)
        body = ", ".join(f"{name}={value!r}" for name, value in values.items())
        return f"{getattr(self, MODEL_ATTRIBUTE).type.__qualname__}({body})"


class DynamicConfigurationInstance(ConfigurationInstance):
    """Instance resolving every property read against a live source."""

    __slots__ = ()

    def __eq__(self, other: object) -> bool:
        return self is other

    def __ne__(self, other: object) -> bool:
        return self is not other

    def __hash__(self) -> int:
        return id(self)

    def __repr__(self) -> str:
        return f"<dynamic {getattr(self, MODEL_ATTRIBUTE).type.__qualname__} at {id(self):#x}>"


def _static_property(name: str, doc: Optional[str]) -> property:
    def fget(self):
        return getattr(self, STATE_ATTRIBUTE)[name]

    return property(fget, doc=doc)


def _dynamic_property(name: str, doc: Optional[str]) -> property:
    def fget(self):
        return getattr(self, STATE_ATTRIBUTE).get(name)

    return property(fget, doc=doc)


class InstanceClassFactory:
    """Builds and caches the generated class of each configuration shape.

    Args:
        base: ``StaticConfigurationInstance`` or ``DynamicConfigurationInstance``.
    """

    def __init__(self, base: type):
        if not issubclass(base, ConfigurationInstance):
            raise TypeError(f"base must derive from ConfigurationInstance, got {base!r}")
        self._base = base
        self._make_property: Callable[[str, Optional[str]], property] = (
            _static_property if issubclass(base, StaticConfigurationInstance) else _dynamic_property
        )
        self._classes: dict[type, type] = {}
        self._lock = threading.Lock()

    def get_class(self, model: ConfigurationModel) -> type:
        require(model, "model")
        generated = self._classes.get(model.type)
        if generated is not None and getattr(generated, MODEL_ATTRIBUTE) is model:
            return generated

        generated = self._build(model)
        with self._lock:
            cached = self._classes.get(model.type)
            if cached is not None and getattr(cached, MODEL_ATTRIBUTE) is model:
                return cached
            self._classes[model.type] = generated
        return generated

    def create(self, model: ConfigurationModel, state: Any) -> Any:
        """Create an instance of the generated class bound to ``state``."""
        instance = object.__new__(self.get_class(model))
        object.__setattr__(instance, STATE_ATTRIBUTE, state)
        return instance

    def _build(self, model: ConfigurationModel) -> type:
        shape = model.type
        namespace: dict[str, Any] = {
            "__module__": shape.__module__,
            "__qualname__": shape.__qualname__,
            "__doc__": shape.__doc__,
            MODEL_ATTRIBUTE: model,
        }
        for prop in model.properties:
            namespace[prop.name] = self._make_property(prop.name, prop.description)
        metaclass = type(shape)
        return metaclass(shape.__name__, (self._base, shape), namespace)


def as_dict(configuration: Any) -> dict[str, Any]:
    """Snapshot a configuration instance as nested plain dictionaries.

    Sub-configurations become dictionaries and sub-configuration lists
    become lists of dictionaries; values are returned as resolved.

    Raises:
        TypeError: If ``configuration`` was not created by a factory.
    """
    model = configuration_model(configuration)

    result: dict[str, Any] = {}
    for prop in model.properties:
        value = getattr(configuration, prop.name)
        if isinstance(prop, SubConfigurationPropertyModel):
            result[prop.name] = None if value is None else as_dict(value)
        elif isinstance(prop, SubConfigurationListPropertyModel):
            result[prop.name] = [as_dict(item) for item in value]
        else:
            result[prop.name] = value
    return result


def configuration_model(configuration: Any) -> ConfigurationModel:
    """Return the model a configuration instance was created from."""
    model: Optional[ConfigurationModel] = getattr(type(configuration), MODEL_ATTRIBUTE, None)
    if model is None:
        raise TypeError(f"{configuration!r} is not a configuration instance")
    return model
