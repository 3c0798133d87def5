"""Metadata extraction from explicit declarations.

Every value property must carry a ``Key`` marker and every marker must be
legal for the kind of property it decorates.
"""

import collections.abc
import dataclasses
import typing
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, get_args, get_origin

from pydantic import BaseModel

from ..attributes import EMPTY_ATTRIBUTES, Attributes
from ..declarations import (
    Converter,
    Default,
    DefaultSize,
    Defaults,
    Description,
    Encrypted,
    FallbackKey,
    IgnoreKey,
    IgnorePrefix,
    Key,
    Marker,
    Meta,
    DECLARATION_ATTRIBUTE,
    get_declaration,
)
from ..errors import InvalidSchemaError
from ..interfaces import ABSENT, ITypeConverter, OptionalValue
from ..utils import require, unwrap_optional
from .extractor import IMetadataExtractor, PropertyKind
from .members import MembersProvider, PropertyMember

_LIST_ORIGINS = (list, tuple, collections.abc.Sequence, collections.abc.MutableSequence)

# Implicit defaults of non-optional primitive properties
ZERO_DEFAULTS = {bool: "false", int: "0", float: "0.0"}

ALLOWED_MARKERS: dict[str, tuple[type, ...]] = {
    PropertyKind.VALUE: (Key, FallbackKey, IgnorePrefix, Default, Converter, Encrypted, Description, Meta),
    PropertyKind.SUB_CONFIGURATION: (Key, IgnoreKey, IgnorePrefix, FallbackKey, Defaults, Description, Meta),
    PropertyKind.SUB_CONFIGURATION_LIST: (Key, IgnoreKey, IgnorePrefix, Defaults, DefaultSize, Description, Meta),
    PropertyKind.IGNORED: (),
}

_SINGLE_USE_MARKERS = (Key, IgnoreKey, IgnorePrefix, FallbackKey, Default, DefaultSize, Converter, Encrypted, Description)


class ExplicitMetadataExtractor(IMetadataExtractor):
    """Reads metadata from ``@configuration`` declarations and ``Annotated`` markers."""

    def __init__(self, members_provider: Optional[MembersProvider] = None):
        self._members = members_provider or MembersProvider()

    # ---- shape level ---- #

    def is_configuration_type(self, shape: Any) -> bool:
        if not is_candidate_class(shape):
            return False
        if get_declaration(shape) is not None:
            return True
        return any(member.markers for member in self._members.get_members(shape))

    def is_abstract_configuration(self, shape: type) -> bool:
        declaration = get_declaration(shape, inherited=False)
        return declaration is not None and declaration.abstract

    # ---- classification ---- #

    def is_value_property(self, shape: type, member: PropertyMember) -> bool:
        return (
            is_accessor(member)
            and _find(member, Key) is not None
            and not self._is_configuration_reference(member)
            and not self._is_configuration_list_reference(member)
        )

    def is_sub_configuration_property(self, shape: type, member: PropertyMember) -> bool:
        return is_accessor(member) and self._is_configuration_reference(member)

    def is_sub_configuration_list_property(self, shape: type, member: PropertyMember) -> bool:
        return is_accessor(member) and self._is_configuration_list_reference(member)

    def is_ignored_member(self, shape: type, member: PropertyMember) -> bool:
        return member.fulfilled or member.class_var or member.name.startswith("_")

    def get_sub_configuration_type(self, shape: type, member: PropertyMember) -> type:
        sub_type = unwrap_optional(member.annotation)
        if not self.is_configuration_type(sub_type):
            raise InvalidSchemaError(
                f"Type of {member} must be a configuration, but {sub_type!r} is not"
            )
        return sub_type

    def get_list_item_type(self, shape: type, member: PropertyMember) -> type:
        item_type = list_item_type(member.annotation)
        if item_type is None or not self.is_configuration_type(item_type):
            raise InvalidSchemaError(
                f"Type of {member} must be a list of configurations, but {member.type!r} is not"
            )
        return item_type

    # ---- descriptive metadata ---- #

    def get_description(self, shape: type, member: Optional[PropertyMember] = None) -> Optional[str]:
        if member is None:
            declaration = get_declaration(shape)
            return declaration.description if declaration else None
        description = _find(member, Description)
        return description.text if description else None

    def get_attributes(self, shape: type, member: Optional[PropertyMember] = None) -> Attributes:
        if member is None:
            meta: dict[str, Optional[str]] = {}
            for klass in reversed(shape.__mro__):
                declaration = klass.__dict__.get(DECLARATION_ATTRIBUTE)
                if declaration is not None:
                    meta.update(declaration.meta)
            return Attributes(meta) if meta else EMPTY_ATTRIBUTES
        entries = {marker.name: marker.value for marker in member.markers if isinstance(marker, Meta)}
        return Attributes(entries) if entries else EMPTY_ATTRIBUTES

    # ---- keys ---- #

    def get_keys(self, shape: type, member: PropertyMember) -> list[str]:
        key = _find(member, Key)
        if key is None:
            return []
        return list(key.values) if key.values else [member.name]

    def get_prefixes(self, shape: type, member: Optional[PropertyMember] = None) -> list[str]:
        if member is None:
            declaration = get_declaration(shape)
            return declaration.resolve_prefixes(shape) if declaration else []

        key = _find(member, Key)
        ignore_key = _find(member, IgnoreKey) is not None
        if key is not None:
            if ignore_key:
                raise InvalidSchemaError(
                    f"Mixing Key and IgnoreKey is not allowed, but {member} declares both"
                )
            return list(key.values) if key.values else [member.name]
        if not (self._is_configuration_reference(member) or self._is_configuration_list_reference(member)):
            raise InvalidSchemaError(f"Prefixes are only defined for sub-configurations, {member} is a value property")
        return [] if ignore_key else [member.name]

    def should_reset_prefix(self, shape: type, member: PropertyMember) -> bool:
        return _find(member, IgnorePrefix) is not None

    def get_fallback_key(self, shape: type, member: PropertyMember) -> Optional[str]:
        fallback_key = _find(member, FallbackKey)
        return fallback_key.key if fallback_key else None

    # ---- value handling ---- #

    def get_converter(self, shape: type, member: PropertyMember) -> Optional[ITypeConverter]:
        converter = _find(member, Converter)
        if converter is None:
            return None
        instance = converter.create()
        if not isinstance(instance, ITypeConverter):
            raise InvalidSchemaError(f"Converter of {member} must be an ITypeConverter, got {instance!r}")
        return instance

    def get_encryption_provider(self, shape: type, member: PropertyMember) -> Optional[str]:
        encrypted = _find(member, Encrypted)
        return encrypted.provider if encrypted else None

    def get_default_value(self, shape: type, member: PropertyMember) -> OptionalValue[str]:
        default = _find(member, Default)
        if default is not None:
            return OptionalValue.of(default.value)
        if member.assigned.is_present:
            return format_default(member, member.assigned.value)
        zero = ZERO_DEFAULTS.get(member.type) if isinstance(member.type, type) else None
        return OptionalValue.of(zero) if zero is not None else ABSENT

    def get_default_values(self, shape: type, member: PropertyMember) -> Mapping[str, Optional[str]]:
        defaults = _find_all(member, Defaults)
        if len(defaults) > 1:
            raise InvalidSchemaError(f"Sub-configuration {member} declares Defaults more than once")
        return dict(defaults[0].values) if defaults else {}

    def get_list_default_values(self, shape: type, member: PropertyMember) -> Sequence[Mapping[str, Optional[str]]]:
        return [dict(defaults.values) for defaults in _find_all(member, Defaults)]

    def get_default_list_size(self, shape: type, member: PropertyMember) -> Optional[int]:
        default_size = _find(member, DefaultSize)
        if default_size is None:
            return None
        if default_size.size < 0:
            raise InvalidSchemaError(
                f"Default sub-configuration list size cannot be negative, please fix DefaultSize on {member}"
            )
        return default_size.size

    def check_markers(self, shape: type, member: PropertyMember, kind: str) -> None:
        markers = member.markers
        allowed = ALLOWED_MARKERS[kind]
        disallowed = [marker for marker in markers if not isinstance(marker, allowed)]
        if disallowed:
            names = ", ".join(type(marker).__name__ for marker in disallowed)
            allowed_names = ", ".join(marker.__name__ for marker in allowed) or "none"
            raise InvalidSchemaError(
                f"{member} is a {kind} property and cannot use {names}; allowed markers: {allowed_names}"
            )

        for marker_type in _SINGLE_USE_MARKERS:
            if len(_find_all(member, marker_type)) > 1:
                raise InvalidSchemaError(f"{member} declares {marker_type.__name__} more than once")

        if _find(member, Default) is not None and member.assigned.is_present:
            raise InvalidSchemaError(
                f"{member} declares both a Default marker and a class-level default value"
            )

    # ---- helpers ---- #

    def _is_configuration_reference(self, member: PropertyMember) -> bool:
        return self.is_configuration_type(unwrap_optional(member.annotation))

    def _is_configuration_list_reference(self, member: PropertyMember) -> bool:
        item_type = list_item_type(member.annotation)
        return item_type is not None and self.is_configuration_type(item_type)


def is_candidate_class(shape: Any) -> bool:
    """Classes that may be configuration shapes at all."""
    return (
        isinstance(shape, type)
        and get_origin(shape) is None
        and shape.__module__ != "builtins"
        and not issubclass(shape, (Enum, BaseModel, ITypeConverter))
        and not dataclasses.is_dataclass(shape)
        and not typing.is_typeddict(shape)
    )


def is_accessor(member: PropertyMember) -> bool:
    """Unimplemented public annotated members are property accessors."""
    return not member.fulfilled and not member.class_var and not member.name.startswith("_")


def list_item_type(annotation: Any) -> Optional[Any]:
    """Element type of ``list[X]``, ``Sequence[X]`` or ``tuple[X, ...]`` annotations."""
    annotation = unwrap_optional(annotation)
    origin = get_origin(annotation)
    if origin not in _LIST_ORIGINS:
        return None
    args = get_args(annotation)
    if origin is tuple:
        if len(args) != 2 or args[1] is not Ellipsis:
            return None
    elif len(args) != 1:
        return None
    return unwrap_optional(args[0])


def format_default(member: PropertyMember, value: Any) -> OptionalValue[str]:
    """Render a class-level default value the way a source would hold it."""
    if value is None:
        return OptionalValue.of(None)
    if isinstance(value, bool):
        return OptionalValue.of("true" if value else "false")
    if isinstance(value, Enum):
        return OptionalValue.of(value.name)
    if isinstance(value, (str, int, float, Decimal)):
        return OptionalValue.of(str(value))
    raise InvalidSchemaError(
        f"Default value {value!r} of {member} cannot be rendered as a string, use Default(...) instead"
    )


def _find(member: PropertyMember, marker_type: type) -> Optional[Marker]:
    require(member, "member")
    for marker in member.markers:
        if isinstance(marker, marker_type):
            return marker
    return None


def _find_all(member: PropertyMember, marker_type: type) -> list:
    return [marker for marker in member.markers if isinstance(marker, marker_type)]
