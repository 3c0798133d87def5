"""YAML converter, selected per property with ``Meta("converter", "yaml")``."""

from typing import Any, Optional

import yaml
from pydantic import ValidationError

from ..errors import ValueFormatError
from ..interfaces import ITypeConverter
from ..utils import require, type_name
from .base import AttributeMap, target_type
from .structured import TypeAdapterPools, shared_pools

CONVERTER = "converter"
YAML = "yaml"


class YamlConverter(ITypeConverter):
    """Parses YAML documents and validates them into the property type.

    Any type pydantic can validate is supported. The converter only applies
    to properties carrying the ``converter=yaml`` attribute and outranks
    every other converter for them.
    """

    priority = 100

    def __init__(self, pools: Optional[TypeAdapterPools] = None):
        self._pools = pools or shared_pools()

    def is_applicable(self, type_: Any, attributes: AttributeMap = None) -> bool:
        require(type_, "type_")
        return bool(attributes) and attributes.get(CONVERTER) == YAML

    def from_string(self, type_: Any, value: Optional[str], attributes: AttributeMap = None) -> Any:
        require(type_, "type_")
        if value is None:
            return None
        try:
            document = yaml.safe_load(value)
        except yaml.YAMLError as e:
            raise ValueFormatError(f"Invalid YAML value: {e}") from e

        with self._pools.borrow(target_type(type_)) as adapter:
            try:
                return adapter.validate_python(document)
            except ValidationError as e:
                raise ValueFormatError(
                    f"YAML value cannot be converted to {type_name(target_type(type_))}: {e}"
                ) from e

    def to_string(self, type_: Any, value: Any, attributes: AttributeMap = None) -> Optional[str]:
        require(type_, "type_")
        if value is None:
            return None
        try:
            with self._pools.borrow(target_type(type_)) as adapter:
                document = adapter.dump_python(value, mode="json")
            text = yaml.safe_dump(document, default_flow_style=True, sort_keys=False).strip()
        except (TypeError, ValueError, yaml.YAMLError) as e:
            raise ValueFormatError(
                f"Unable to convert {value!r} from {type_name(target_type(type_))} to YAML: {e}"
            ) from e
        # scalar documents end with an explicit document end marker
        if text.endswith("\n..."):
            text = text[: -len("\n...")]
        return text
