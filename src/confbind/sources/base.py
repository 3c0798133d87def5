"""In-memory and composite configuration sources."""

import logging
import threading
from typing import Iterable, Iterator, Mapping, MutableMapping, Optional, Sequence

from ..interfaces import (
    ABSENT,
    ConfigurationEntry,
    IConfigurationSource,
    IIterableConfigurationSource,
    IWritableConfigurationSource,
    OptionalValue,
)
from ..utils import require

logger = logging.getLogger(__name__)

AttributeMap = Optional[Mapping[str, Optional[str]]]


class MapConfigurationSource(IIterableConfigurationSource):
    """Source backed by a ``str -> str`` mapping.

    The mapping is used as-is, not copied. A key mapped to None is an
    explicit null.
    """

    def __init__(self, values: Optional[Mapping[str, Optional[str]]] = None):
        self._values = values if values is not None else {}

    def get_value(self, key: str, attributes: AttributeMap = None) -> OptionalValue[str]:
        require(key, "key")
        if key not in self._values:
            return ABSENT
        return OptionalValue.of(self._values[key])

    def get_all_entries(self) -> Iterator[ConfigurationEntry]:
        for key, value in list(self._values.items()):
            yield ConfigurationEntry(key, value)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._values)} entries)"


class WritableMapConfigurationSource(MapConfigurationSource, IWritableConfigurationSource):
    """Thread-safe source whose values can be changed at runtime.

    Configurations created in dynamic mode observe the changes on their next
    property read.
    """

    def __init__(self, values: Optional[Mapping[str, Optional[str]]] = None):
        self._lock = threading.RLock()
        store: MutableMapping[str, Optional[str]] = dict(values or {})
        super().__init__(store)

    def get_value(self, key: str, attributes: AttributeMap = None) -> OptionalValue[str]:
        with self._lock:
            return super().get_value(key, attributes)

    def get_all_entries(self) -> Iterator[ConfigurationEntry]:
        with self._lock:
            entries = list(super().get_all_entries())
        return iter(entries)

    def set_value(self, key: str, value: Optional[str], attributes: AttributeMap = None) -> None:
        require(key, "key")
        with self._lock:
            self._values[key] = value

    def remove_value(self, key: str, attributes: AttributeMap = None) -> None:
        require(key, "key")
        with self._lock:
            self._values.pop(key, None)

    def update(self, values: Mapping[str, Optional[str]]) -> None:
        """Set several values atomically."""
        with self._lock:
            self._values.update(values)


class MultiConfigurationSource(IConfigurationSource):
    """Chains sources; earlier sources take precedence.

    ``find_entry`` asks every source for all candidate keys before moving on
    to the next source, so a source's least specific key still beats the
    most specific key of a later source.
    """

    def __init__(self, sources: Sequence[IConfigurationSource]):
        require(sources, "sources")
        self._sources = list(sources)

    @property
    def sources(self) -> list[IConfigurationSource]:
        return list(self._sources)

    def get_value(self, key: str, attributes: AttributeMap = None) -> OptionalValue[str]:
        require(key, "key")
        for source in self._sources:
            value = source.get_value(key, attributes)
            if value.is_present:
                return value
        return ABSENT

    def find_entry(self, keys: Iterable[str], attributes: AttributeMap = None) -> Optional[ConfigurationEntry]:
        require(keys, "keys")
        keys = list(keys)
        for source in self._sources:
            entry = source.find_entry(keys, attributes)
            if entry is not None:
                return entry
        return None


class LoggingConfigurationSource(IConfigurationSource):
    """Logs every lookup of the wrapped source at INFO level."""

    def __init__(self, source: IConfigurationSource):
        self._source = require(source, "source")

    def get_value(self, key: str, attributes: AttributeMap = None) -> OptionalValue[str]:
        value = self._source.get_value(key, attributes)
        logger.info("%s=%r %s", key, value, dict(attributes) if attributes else "(no attributes)")
        return value

    def find_entry(self, keys: Iterable[str], attributes: AttributeMap = None) -> Optional[ConfigurationEntry]:
        keys = list(keys)
        entry = self._source.find_entry(keys, attributes)
        if logger.isEnabledFor(logging.INFO):
            found = f"{entry.key}={entry.value!r}" if entry else "not found"
            logger.info(
                "[%s] %s %s", ", ".join(keys), found, dict(attributes) if attributes else "(no attributes)"
            )
        return entry
