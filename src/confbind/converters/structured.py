"""Structured values (pydantic models and dataclasses) encoded as JSON.

``TypeAdapter`` construction is expensive, so adapters are kept in small
per-type pools which are themselves kept in a bounded LRU registry.
"""

import dataclasses
import logging
import threading
from collections import OrderedDict
from contextlib import contextmanager
from typing import Any, Iterator, Optional, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import ValueFormatError
from ..interfaces import ITypeConverter
from ..utils import require, type_name
from .base import AttributeMap, target_type

logger = logging.getLogger(__name__)

DEFAULT_MAX_POOLS = 64
DEFAULT_POOL_SIZE = 4


class TypeAdapterPool:
    """Bounded pool of ``TypeAdapter`` instances for one type.

    Adapters are created lazily. When all ``max_size`` adapters are
    borrowed, ``borrow`` blocks until one is returned.

    Args:
        type_: Type the adapters validate.
        max_size: Maximum number of adapters.
    """

    def __init__(self, type_: Any, max_size: int = DEFAULT_POOL_SIZE):
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.type = require(type_, "type_")
        self.max_size = max_size
        self._available = threading.BoundedSemaphore(max_size)
        self._idle: list[TypeAdapter] = []
        self._created = 0
        self._lock = threading.Lock()

    @property
    def created(self) -> int:
        """Number of adapters created so far."""
        return self._created

    @contextmanager
    def borrow(self) -> Iterator[TypeAdapter]:
        """Borrow an adapter; it is returned to the pool on exit."""
        self._available.acquire()
        try:
            adapter = self._take()
            try:
                yield adapter
            finally:
                with self._lock:
                    self._idle.append(adapter)
        finally:
            self._available.release()

    def _take(self) -> TypeAdapter:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        logger.debug("Creating TypeAdapter for %s", type_name(self.type))
        adapter = TypeAdapter(self.type)
        with self._lock:
            self._created += 1
        return adapter


class TypeAdapterPools:
    """LRU registry of ``TypeAdapterPool`` instances keyed by type.

    Args:
        max_pools: Maximum number of pools kept; the least recently used
            pool is dropped beyond it.
        pool_size: Size of every pool.
    """

    def __init__(self, max_pools: int = DEFAULT_MAX_POOLS, pool_size: int = DEFAULT_POOL_SIZE):
        if max_pools <= 0:
            raise ValueError(f"max_pools must be positive, got {max_pools}")
        self.max_pools = max_pools
        self.pool_size = pool_size
        self._pools: OrderedDict[Any, TypeAdapterPool] = OrderedDict()
        self._lock = threading.Lock()

    def pool_for(self, type_: Any) -> TypeAdapterPool:
        with self._lock:
            pool = self._pools.get(type_)
            if pool is None:
                pool = TypeAdapterPool(type_, self.pool_size)
                self._pools[type_] = pool
                while len(self._pools) > self.max_pools:
                    evicted, _ = self._pools.popitem(last=False)
                    logger.debug("Evicted TypeAdapter pool of %s", type_name(evicted))
            else:
                self._pools.move_to_end(type_)
            return pool

    @contextmanager
    def borrow(self, type_: Any) -> Iterator[TypeAdapter]:
        with self.pool_for(type_).borrow() as adapter:
            yield adapter

    def clear(self) -> None:
        with self._lock:
            self._pools.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pools)


_shared_pools: Optional[TypeAdapterPools] = None
_shared_lock = threading.Lock()


def shared_pools() -> TypeAdapterPools:
    """Process-wide pools used when a converter is created without its own."""
    global _shared_pools
    with _shared_lock:
        if _shared_pools is None:
            _shared_pools = TypeAdapterPools()
        return _shared_pools


def is_structured_type(type_: Any) -> bool:
    """Pydantic models and dataclasses."""
    type_ = target_type(type_)
    if not isinstance(type_, type) or get_origin(type_) is not None:
        return False
    return issubclass(type_, BaseModel) or dataclasses.is_dataclass(type_)


class StructuredConverter(ITypeConverter):
    """Converts pydantic models and dataclasses from and to JSON."""

    def __init__(self, pools: Optional[TypeAdapterPools] = None):
        self._pools = pools or shared_pools()

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        return is_structured_type(type_)

    def from_string(self, type_: Any, value: Optional[str], attributes: AttributeMap = None) -> Any:
        require(type_, "type_")
        if value is None:
            return None
        with self._pools.borrow(target_type(type_)) as adapter:
            try:
                return adapter.validate_json(value)
            except ValidationError as e:
                raise ValueFormatError(
                    f"Unable to convert '{value}' to {type_name(target_type(type_))}: {e}"
                ) from e

    def to_string(self, type_: Any, value: Any, attributes: AttributeMap = None) -> Optional[str]:
        require(type_, "type_")
        if value is None:
            return None
        target = target_type(type_)
        if not isinstance(value, target):
            raise ValueFormatError(
                f"Unable to convert {value!r} from {type_name(target)}: expected an instance of {type_name(target)}"
            )
        with self._pools.borrow(target) as adapter:
            try:
                return adapter.dump_json(value).decode("utf-8")
            except (TypeError, ValueError) as e:
                raise ValueFormatError(f"Unable to convert {value!r} from {type_name(target)}: {e}") from e
