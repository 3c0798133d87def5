"""Property parsers turning shape members into property models.

The model provider runs the parsers in order; the first one that applies to
a member builds its model.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from ..errors import InvalidSchemaError
from ..utils import type_name
from .extractor import IMetadataExtractor, PropertyKind
from .members import PropertyMember
from .types import (
    PropertyModel,
    SubConfigurationListPropertyModel,
    SubConfigurationPropertyModel,
    ValuePropertyModel,
)

if TYPE_CHECKING:
    from .provider import ConfigurationModelProvider, ModelPath


class PropertyParser(ABC):
    """Builds the model of one kind of property."""

    kind: str = ""

    def __init__(self, extractor: IMetadataExtractor, provider: "ConfigurationModelProvider"):
        self._extractor = extractor
        self._provider = provider

    @abstractmethod
    def applies(self, shape: type, member: PropertyMember) -> bool:
        pass

    @abstractmethod
    def parse(self, shape: type, member: PropertyMember, path: "ModelPath") -> Optional[PropertyModel]:
        """Build the property model.

        Args:
            shape: Shape declaring the member.
            member: The member to parse.
            path: Traversal path leading to ``shape``, used for cycle checks.

        Returns:
            The property model, or None when the member is not a property.
        """
        pass

    def _reject_assigned_value(self, member: PropertyMember) -> None:
        if member.assigned.is_present:
            raise InvalidSchemaError(
                f"{member} is a {self.kind} property and cannot have a class-level default value"
            )


class ValuePropertyParser(PropertyParser):
    kind = PropertyKind.VALUE

    def applies(self, shape: type, member: PropertyMember) -> bool:
        return self._extractor.is_value_property(shape, member)

    def parse(self, shape: type, member: PropertyMember, path: "ModelPath") -> ValuePropertyModel:
        extractor = self._extractor
        extractor.check_markers(shape, member, self.kind)

        attributes = extractor.get_attributes(shape, member)
        converter = extractor.get_converter(shape, member)
        if converter is not None and not converter.is_applicable(member.type, attributes):
            raise InvalidSchemaError(
                f"Converter {type(converter).__name__} declared on {member} "
                f"cannot convert {type_name(member.type)}"
            )

        return ValuePropertyModel(
            name=member.name,
            type=member.type,
            description=extractor.get_description(shape, member),
            attributes=attributes,
            keys=tuple(extractor.get_keys(shape, member)),
            fallback_key=extractor.get_fallback_key(shape, member),
            reset_prefix=extractor.should_reset_prefix(shape, member),
            encryption_provider=extractor.get_encryption_provider(shape, member),
            default_value=extractor.get_default_value(shape, member),
            converter=converter,
        )


class SubConfigurationPropertyParser(PropertyParser):
    kind = PropertyKind.SUB_CONFIGURATION

    def applies(self, shape: type, member: PropertyMember) -> bool:
        return self._extractor.is_sub_configuration_property(shape, member)

    def parse(self, shape: type, member: PropertyMember, path: "ModelPath") -> SubConfigurationPropertyModel:
        extractor = self._extractor
        extractor.check_markers(shape, member, self.kind)
        self._reject_assigned_value(member)

        sub_type = extractor.get_sub_configuration_type(shape, member)
        model = self._provider.build_nested_model(sub_type, path + ((shape, member.name),))

        return SubConfigurationPropertyModel(
            name=member.name,
            type=sub_type,
            description=extractor.get_description(shape, member),
            attributes=extractor.get_attributes(shape, member),
            model=model,
            declared_type=member.type,
            prefixes=tuple(extractor.get_prefixes(shape, member)),
            reset_prefix=extractor.should_reset_prefix(shape, member),
            fallback_key=extractor.get_fallback_key(shape, member),
            default_values=extractor.get_default_values(shape, member),
        )


class SubConfigurationListPropertyParser(PropertyParser):
    kind = PropertyKind.SUB_CONFIGURATION_LIST

    def applies(self, shape: type, member: PropertyMember) -> bool:
        return self._extractor.is_sub_configuration_list_property(shape, member)

    def parse(self, shape: type, member: PropertyMember, path: "ModelPath") -> SubConfigurationListPropertyModel:
        extractor = self._extractor
        extractor.check_markers(shape, member, self.kind)
        self._reject_assigned_value(member)

        item_type = extractor.get_list_item_type(shape, member)
        item_model = self._provider.build_nested_model(item_type, path + ((shape, member.name),))

        default_values = tuple(extractor.get_list_default_values(shape, member))
        default_size = extractor.get_default_list_size(shape, member)
        if default_size is None:
            default_size = len(default_values)

        return SubConfigurationListPropertyModel(
            name=member.name,
            type=member.type,
            description=extractor.get_description(shape, member),
            attributes=extractor.get_attributes(shape, member),
            item_model=item_model,
            prefixes=tuple(extractor.get_prefixes(shape, member)),
            reset_prefix=extractor.should_reset_prefix(shape, member),
            default_size=default_size,
            default_values=default_values,
        )


class IgnoredMemberParser(PropertyParser):
    kind = PropertyKind.IGNORED

    def applies(self, shape: type, member: PropertyMember) -> bool:
        return self._extractor.is_ignored_member(shape, member)

    def parse(self, shape: type, member: PropertyMember, path: "ModelPath") -> None:
        self._extractor.check_markers(shape, member, self.kind)
        return None
