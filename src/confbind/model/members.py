"""Property member discovery across a shape's inheritance graph."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, get_origin

from ..declarations import Marker, get_markers
from ..errors import InvalidSchemaError
from ..interfaces import ABSENT, OptionalValue
from ..utils import is_optional, strip_annotated, type_name, unwrap_optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PropertyMember:
    """One annotated member of a configuration shape.

    Attributes:
        name: Member name.
        annotation: Annotation as declared, including ``Annotated`` metadata.
        owner: Class declaring the annotation.
        fulfilled: The member is implemented concretely (method, property or
            other descriptor) and is therefore not a configuration property.
        class_var: The member is annotated as ``ClassVar``.
        assigned: Plain class-level value assigned to the member, if any.
    """
    name: str
    annotation: Any
    owner: type
    fulfilled: bool = False
    class_var: bool = False
    assigned: OptionalValue[Any] = ABSENT

    @property
    def type(self) -> Any:
        return strip_annotated(self.annotation)

    @property
    def markers(self) -> tuple[Marker, ...]:
        return get_markers(self.annotation)

    def __str__(self) -> str:
        return f"{self.owner.__qualname__}.{self.name}"


class MembersProvider:
    """Enumerates the annotated members of a shape and its ancestors.

    When several classes in the MRO annotate the same name with covariant
    types (equal, or one a subclass of the other, ignoring ``Optional``), a
    single declaration survives: the one with the most specific type, and on
    ties the one from the most-derived class. ``X`` is more specific than
    ``Optional[X]``. Declarations with unrelated types are all kept so
    the model provider can report them as duplicates.
    """

    def get_members(self, shape: type) -> list[PropertyMember]:
        groups: dict[str, list[PropertyMember]] = {}

        for klass in reversed(shape.__mro__):
            if klass is object:
                continue
            for name, annotation in self._own_annotations(klass).items():
                member = PropertyMember(
                    name=name,
                    annotation=annotation,
                    owner=klass,
                    class_var=get_origin(annotation) is ClassVar or annotation is ClassVar,
                )
                declarations = groups.setdefault(name, [])
                for index, existing in enumerate(declarations):
                    if _covariant(existing.type, member.type):
                        # later classes in the reversed MRO are more derived
                        if not _strictly_narrower(existing.type, member.type):
                            declarations[index] = member
                        break
                else:
                    declarations.append(member)

        members = []
        for declarations in groups.values():
            for member in declarations:
                fulfilled, assigned = self._implementation(shape, member.name)
                members.append(
                    PropertyMember(
                        name=member.name,
                        annotation=member.annotation,
                        owner=member.owner,
                        fulfilled=fulfilled,
                        class_var=member.class_var,
                        assigned=assigned,
                    )
                )
        logger.debug("Discovered %d members on %s", len(members), shape.__qualname__)
        return members

    @staticmethod
    def _own_annotations(klass: type) -> dict[str, Any]:
        try:
            return inspect.get_annotations(klass, eval_str=True)
        except (NameError, SyntaxError, TypeError) as e:
            raise InvalidSchemaError(
                f"Cannot resolve annotations of {klass.__qualname__}: {e}"
            ) from e

    @staticmethod
    def _implementation(shape: type, name: str) -> tuple[bool, OptionalValue[Any]]:
        """Tell whether ``name`` is implemented, or holds a plain default value."""
        for klass in shape.__mro__:
            if name in klass.__dict__:
                attribute = klass.__dict__[name]
                if callable(attribute) or hasattr(attribute, "__get__"):
                    return True, ABSENT
                return False, OptionalValue.of(attribute)
        return False, ABSENT


def _is_class(type_: Any) -> bool:
    return isinstance(type_, type) and get_origin(type_) is None


def _covariant(first: Any, second: Any) -> bool:
    """The types are equal or one derives from the other, ignoring ``Optional``."""
    first, second = unwrap_optional(first), unwrap_optional(second)
    if first == second:
        return True
    if _is_class(first) and _is_class(second):
        return issubclass(first, second) or issubclass(second, first)
    return False


def _narrower_or_equal(first: Any, second: Any) -> bool:
    base, other = unwrap_optional(first), unwrap_optional(second)
    if base != other and not (_is_class(base) and _is_class(other) and issubclass(base, other)):
        return False
    # X is narrower than Optional[X]
    return is_optional(second) or not is_optional(first)


def _strictly_narrower(first: Any, second: Any) -> bool:
    """``first`` admits fewer values than ``second``."""
    return _narrower_or_equal(first, second) and not _narrower_or_equal(second, first)


def describe_members(members: list[PropertyMember]) -> str:
    return ", ".join(f"{member} ({type_name(member.type)})" for member in members)
