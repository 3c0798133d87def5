"""Metadata extractor interface.

The model provider never reads declarations itself; it asks an extractor.
Two strategies implement this interface: ``ExplicitMetadataExtractor``
(metadata must be declared with markers) and ``ConventionMetadataExtractor``
(metadata inferred from names and types, markers optional).
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from ..attributes import Attributes
from ..interfaces import ITypeConverter, OptionalValue
from .members import PropertyMember


class PropertyKind:
    """Property kinds a member can be classified as."""
    VALUE = "value"
    SUB_CONFIGURATION = "sub-configuration"
    SUB_CONFIGURATION_LIST = "sub-configuration list"
    IGNORED = "ignored"


class IMetadataExtractor(ABC):
    """Answers schema questions about a (shape, member) pair.

    All queries are pure and side-effect free. Methods taking an optional
    ``member`` answer for the shape itself when it is None.
    """

    @abstractmethod
    def is_configuration_type(self, shape: Any) -> bool:
        pass

    @abstractmethod
    def is_abstract_configuration(self, shape: type) -> bool:
        pass

    @abstractmethod
    def is_value_property(self, shape: type, member: PropertyMember) -> bool:
        pass

    @abstractmethod
    def is_sub_configuration_property(self, shape: type, member: PropertyMember) -> bool:
        pass

    @abstractmethod
    def is_sub_configuration_list_property(self, shape: type, member: PropertyMember) -> bool:
        pass

    @abstractmethod
    def is_ignored_member(self, shape: type, member: PropertyMember) -> bool:
        """Members that are not configuration properties (implemented or ClassVar)."""
        pass

    @abstractmethod
    def get_sub_configuration_type(self, shape: type, member: PropertyMember) -> type:
        pass

    @abstractmethod
    def get_list_item_type(self, shape: type, member: PropertyMember) -> type:
        pass

    @abstractmethod
    def get_description(self, shape: type, member: Optional[PropertyMember] = None) -> Optional[str]:
        pass

    @abstractmethod
    def get_keys(self, shape: type, member: PropertyMember) -> list[str]:
        pass

    @abstractmethod
    def get_prefixes(self, shape: type, member: Optional[PropertyMember] = None) -> list[str]:
        pass

    @abstractmethod
    def should_reset_prefix(self, shape: type, member: PropertyMember) -> bool:
        pass

    @abstractmethod
    def get_fallback_key(self, shape: type, member: PropertyMember) -> Optional[str]:
        pass

    @abstractmethod
    def get_converter(self, shape: type, member: PropertyMember) -> Optional[ITypeConverter]:
        pass

    @abstractmethod
    def get_encryption_provider(self, shape: type, member: PropertyMember) -> Optional[str]:
        pass

    @abstractmethod
    def get_default_value(self, shape: type, member: PropertyMember) -> OptionalValue[str]:
        pass

    @abstractmethod
    def get_default_values(self, shape: type, member: PropertyMember) -> Mapping[str, Optional[str]]:
        pass

    @abstractmethod
    def get_list_default_values(
        self, shape: type, member: PropertyMember
    ) -> Sequence[Mapping[str, Optional[str]]]:
        pass

    @abstractmethod
    def get_default_list_size(self, shape: type, member: PropertyMember) -> Optional[int]:
        """Declared list size, or None when no size is declared."""
        pass

    @abstractmethod
    def get_attributes(self, shape: type, member: Optional[PropertyMember] = None) -> Attributes:
        pass

    @abstractmethod
    def check_markers(self, shape: type, member: PropertyMember, kind: str) -> None:
        """Validate the markers of a member classified as ``kind``.

        Raises:
            InvalidSchemaError: If the strategy rejects the declaration.
        """
        pass
