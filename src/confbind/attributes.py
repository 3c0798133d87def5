"""Immutable custom attributes attached to configurations and properties."""

from collections.abc import Mapping
from typing import Iterator, Optional


class Attributes(Mapping):
    """Read-only ``str -> str`` mapping.

    Attributes travel with every resolved value so sources and converters can
    react to per-property metadata (for example ``escape=false`` or
    ``converter=yaml``).
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Mapping[str, Optional[str]]] = None):
        items = dict(items or {})
        for name in items:
            if not isinstance(name, str):
                raise TypeError(f"Attribute names must be strings, got {name!r}")
        self._items = items

    @classmethod
    def merge(
        cls,
        parent: Optional[Mapping[str, Optional[str]]],
        child: Optional[Mapping[str, Optional[str]]],
    ) -> "Attributes":
        """Combine two attribute sets; entries of ``child`` override ``parent``."""
        if not child:
            return parent if isinstance(parent, Attributes) else cls(parent)
        if not parent:
            return child if isinstance(child, Attributes) else cls(child)
        merged = dict(parent)
        merged.update(child)
        return cls(merged)

    def __getitem__(self, name: str) -> Optional[str]:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Attributes({self._items!r})"


EMPTY_ATTRIBUTES = Attributes()
