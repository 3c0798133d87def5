"""Metadata extraction by naming convention.

Shapes need no markers: every public annotated attribute is a property keyed
by its own name. Markers, when present, override the inferred metadata.
"""

import inspect
from typing import Any, Optional

from .explicit import ExplicitMetadataExtractor, is_accessor, is_candidate_class
from .members import PropertyMember

ABSTRACT_CONFIGURATION_PREFIX = "Abstract"


class ConventionMetadataExtractor(ExplicitMetadataExtractor):
    """Infers configuration metadata from names and types."""

    def is_configuration_type(self, shape: Any) -> bool:
        if not is_candidate_class(shape):
            return False
        if super().is_configuration_type(shape):
            return True
        return self._has_only_accessors(shape)

    def is_abstract_configuration(self, shape: type) -> bool:
        return shape.__name__.startswith(ABSTRACT_CONFIGURATION_PREFIX) or super().is_abstract_configuration(shape)

    def is_value_property(self, shape: type, member: PropertyMember) -> bool:
        return (
            is_accessor(member)
            and not self.is_sub_configuration_property(shape, member)
            and not self.is_sub_configuration_list_property(shape, member)
        )

    def get_description(self, shape: type, member: Optional[PropertyMember] = None) -> Optional[str]:
        description = super().get_description(shape, member)
        if description is None and member is None:
            doc = shape.__dict__.get("__doc__")
            if doc:
                # first line of the class docstring
                return inspect.cleandoc(doc).splitlines()[0]
        return description

    def get_keys(self, shape: type, member: PropertyMember) -> list[str]:
        return super().get_keys(shape, member) or [member.name]

    def check_markers(self, shape: type, member: PropertyMember, kind: str) -> None:
        pass

    def _has_only_accessors(self, shape: type) -> bool:
        accessor_found = False
        for member in self._members.get_members(shape):
            if member.fulfilled or member.class_var:
                continue
            if not is_accessor(member):
                return False
            accessor_found = True
        return accessor_found
