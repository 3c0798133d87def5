"""Configuration model provider.

Builds, validates and caches ``ConfigurationModel`` instances for
configuration shapes. The provider is safe to share between threads: models
are built outside the lock and published with ``setdefault`` so concurrent
callers converge on one canonical instance.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Optional

from ..errors import CycleDetectedError, DuplicatePropertyError, InvalidSchemaError, UnrecognizedMemberError
from ..utils import require, type_name
from .convention import ConventionMetadataExtractor
from .explicit import ExplicitMetadataExtractor
from .extractor import IMetadataExtractor
from .members import MembersProvider, PropertyMember, describe_members
from .parsers import (
    IgnoredMemberParser,
    PropertyParser,
    SubConfigurationListPropertyParser,
    SubConfigurationPropertyParser,
    ValuePropertyParser,
)
from .types import ConfigurationModel, PropertyModel

logger = logging.getLogger(__name__)

# Traversal path: (shape, member name) for every sub-configuration being built
ModelPath = tuple[tuple[type, str], ...]

DEFAULT_MODEL_CACHE_SIZE = 256


class ConfigurationModelProvider:
    """Provides configuration models built by a metadata extractor.

    Args:
        extractor: Metadata strategy answering the schema questions.
        cache_size: Maximum number of cached models; None keeps all of them.
        members_provider: Member discovery; shared with the extractor when
            the extractor is created here.
    """

    def __init__(
        self,
        extractor: Optional[IMetadataExtractor] = None,
        cache_size: Optional[int] = DEFAULT_MODEL_CACHE_SIZE,
        members_provider: Optional[MembersProvider] = None,
    ):
        if cache_size is not None and cache_size <= 0:
            raise ValueError(f"cache_size must be positive or None, got {cache_size}")
        self._members = members_provider or MembersProvider()
        self._extractor = extractor or ConventionMetadataExtractor(self._members)
        self._cache_size = cache_size
        self._models: OrderedDict[type, ConfigurationModel] = OrderedDict()
        self._is_configuration: OrderedDict[Any, bool] = OrderedDict()
        self._lock = threading.Lock()
        self._parsers: list[PropertyParser] = [
            ValuePropertyParser(self._extractor, self),
            SubConfigurationPropertyParser(self._extractor, self),
            SubConfigurationListPropertyParser(self._extractor, self),
            IgnoredMemberParser(self._extractor, self),
        ]

    @property
    def extractor(self) -> IMetadataExtractor:
        return self._extractor

    def is_configuration_type(self, shape: Any) -> bool:
        require(shape, "shape")
        try:
            with self._lock:
                cached = self._is_configuration.get(shape)
                if cached is not None:
                    self._is_configuration.move_to_end(shape)
        except TypeError:
            # unhashable annotations are never configuration shapes
            return False
        if cached is not None:
            return cached

        answer = self._extractor.is_configuration_type(shape)
        with self._lock:
            answer = self._is_configuration.setdefault(shape, answer)
            self._is_configuration.move_to_end(shape)
            self._trim(self._is_configuration)
        return answer

    def get_configuration_model(self, shape: type) -> ConfigurationModel:
        """Return the model of a configuration shape.

        Args:
            shape: The configuration shape.

        Returns:
            The cached, canonical model of ``shape``.

        Raises:
            ValueError: If ``shape`` is None.
            InvalidSchemaError: If ``shape`` is not a valid configuration.
        """
        require(shape, "shape")
        return self.build_nested_model(shape, ())

    def build_nested_model(self, shape: type, path: ModelPath) -> ConfigurationModel:
        """Return the model of ``shape`` reached through ``path``.

        Used by the property parsers; ``path`` lists the sub-configuration
        properties already being built on the current call stack.
        """
        cached = self._cached(shape)
        if cached is not None:
            return cached
        model = self._build(shape, path)
        return self._publish(shape, model)

    def clear_cache(self) -> None:
        with self._lock:
            self._models.clear()
            self._is_configuration.clear()

    @property
    def cache_info(self) -> dict[str, Optional[int]]:
        with self._lock:
            return {
                "models": len(self._models),
                "type_checks": len(self._is_configuration),
                "max_size": self._cache_size,
            }

    # =========================================================================
    # Model building
    # =========================================================================

    def _build(self, shape: type, path: ModelPath) -> ConfigurationModel:
        if not self.is_configuration_type(shape):
            raise InvalidSchemaError(f"{type_name(shape)} is not a configuration type")
        self._check_cycle(shape, path)

        logger.debug("Building configuration model for %s", type_name(shape))
        members = self._members.get_members(shape)
        properties = [
            prop for prop in (self._parse_property(shape, member, path) for member in members)
            if prop is not None
        ]
        self._check_duplicates(shape, members, properties)

        extractor = self._extractor
        return ConfigurationModel(
            type=shape,
            description=extractor.get_description(shape),
            is_abstract=extractor.is_abstract_configuration(shape),
            prefixes=tuple(extractor.get_prefixes(shape)),
            attributes=extractor.get_attributes(shape),
            properties=tuple(properties),
        )

    def _parse_property(self, shape: type, member: PropertyMember, path: ModelPath) -> Optional[PropertyModel]:
        for parser in self._parsers:
            if parser.applies(shape, member):
                return parser.parse(shape, member, path)
        raise UnrecognizedMemberError(
            f"Unable to recognize {member} ({type_name(member.type)}) as a configuration property",
            member=str(member),
        )

    @staticmethod
    def _check_cycle(shape: type, path: ModelPath) -> None:
        if any(visited is shape for visited, _ in path):
            via = " -> ".join(f"{owner.__qualname__}.{name}" for owner, name in path)
            raise CycleDetectedError(
                f"Cycle between configurations detected for {type_name(shape)} via {via}",
                path=[f"{owner.__qualname__}.{name}" for owner, name in path],
            )

    @staticmethod
    def _check_duplicates(shape: type, members: list[PropertyMember], properties: list[PropertyModel]) -> None:
        seen: set[str] = set()
        for prop in properties:
            if prop.name in seen:
                clashing = [member for member in members if member.name == prop.name]
                raise DuplicatePropertyError(
                    f"{type_name(shape)} configuration type has duplicated property "
                    f"'{prop.name}': {describe_members(clashing)}",
                    property_name=prop.name,
                    members=[str(member) for member in clashing],
                )
            seen.add(prop.name)

    # =========================================================================
    # Cache
    # =========================================================================

    def _cached(self, shape: type) -> Optional[ConfigurationModel]:
        with self._lock:
            model = self._models.get(shape)
            if model is not None:
                self._models.move_to_end(shape)
            return model

    def _publish(self, shape: type, model: ConfigurationModel) -> ConfigurationModel:
        with self._lock:
            canonical = self._models.setdefault(shape, model)
            self._models.move_to_end(shape)
            for evicted in self._trim(self._models):
                logger.debug("Evicted configuration model of %s", type_name(evicted))
        return canonical

    def _trim(self, cache: OrderedDict) -> list:
        """Drop least recently used entries beyond the cache size; caller holds the lock."""
        evicted = []
        if self._cache_size is not None:
            while len(cache) > self._cache_size:
                evicted.append(cache.popitem(last=False)[0])
        return evicted


def create_model_provider(
    explicit: bool = False, cache_size: Optional[int] = DEFAULT_MODEL_CACHE_SIZE
) -> ConfigurationModelProvider:
    """Create a provider using the explicit or the convention strategy."""
    members = MembersProvider()
    extractor: IMetadataExtractor = (
        ExplicitMetadataExtractor(members) if explicit else ConventionMetadataExtractor(members)
    )
    return ConfigurationModelProvider(extractor, cache_size=cache_size, members_provider=members)
