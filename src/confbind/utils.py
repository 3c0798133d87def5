"""Shared utility functions for confbind.

This module provides the small type-inspection and naming helpers used
across the model, converter and factory layers.
"""

import re
import types
import typing
from typing import Any, Optional, Union, get_args, get_origin

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def require(value: Any, name: str) -> Any:
    """Fail loudly when a required argument is missing.

    Args:
        value: Argument value.
        name: Argument name used in the error message.

    Returns:
        The value itself.

    Raises:
        ValueError: If the value is None.
    """
    if value is None:
        raise ValueError(f"{name} cannot be None")
    return value


def snake_case(name: str) -> str:
    """Convert a class name such as ``DatabaseConfiguration`` to ``database_configuration``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def strip_annotated(annotation: Any) -> Any:
    """Return the underlying type of an ``Annotated[...]`` annotation."""
    while get_origin(annotation) is typing.Annotated:
        annotation = get_args(annotation)[0]
    return annotation


def unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for ``Optional[X]`` (and ``X | None``), otherwise the annotation."""
    annotation = strip_annotated(annotation)
    origin = get_origin(annotation)
    if origin is Union or _is_union_type(origin):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return strip_annotated(args[0])
    return annotation


def is_optional(annotation: Any) -> bool:
    """Check whether an annotation admits None."""
    annotation = strip_annotated(annotation)
    origin = get_origin(annotation)
    if origin is Union or _is_union_type(origin):
        return type(None) in get_args(annotation)
    return False


def type_name(type_: Any) -> str:
    """Human readable name of a type or type annotation."""
    if isinstance(type_, type) and get_origin(type_) is None:
        return type_.__qualname__
    return repr(type_).replace("typing.", "")


def ordered_unique(values) -> list:
    """Deduplicate while keeping first occurrences in order."""
    return list(dict.fromkeys(values))


def _is_union_type(origin: Optional[Any]) -> bool:
    # PEP 604 unions (int | None) report types.UnionType as origin
    return origin is types.UnionType
