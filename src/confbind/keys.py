"""Candidate key computation.

Every value property is looked up through an ordered list of candidate keys
built from the prefixes accumulated while descending into nested
configurations, the property's configured keys, an optional fallback prefix
and an optional bare fallback key.

Example:
    >>> generator = KeyGenerator(["fallback", "fallback.p1"])
    >>> candidate_keys(generator, ["key"], KeyGenerator(["other"]), "last")
    ['fallback.key', 'fallback.p1.key', 'other.key', 'last']
"""

from typing import Iterable, Optional, Sequence

from .utils import ordered_unique, require

DELIMITER = "."
LIST_SIZE = "size"


def compute_key(prefix: Optional[str], key: str) -> str:
    """Join a prefix and a key; an empty prefix yields the bare key."""
    require(key, "key")
    return f"{prefix}{DELIMITER}{key}" if prefix else key


def compute_indexed_key(prefix: Optional[str], index: int) -> str:
    """Build ``prefix[index]`` (or ``[index]`` without a prefix)."""
    if index < 0:
        raise ValueError(f"index must be >= 0, got {index}")
    index_text = f"[{index}]"
    return prefix + index_text if prefix else index_text


def size_key(prefix: Optional[str]) -> str:
    """Key holding the size of a sub-configuration list."""
    return compute_key(prefix, LIST_SIZE)


class KeyGenerator:
    """Immutable ordered list of key prefixes.

    Prefixes are ordered from the least to the most specific, as
    established while walking the configuration model.
    """

    __slots__ = ("_prefixes",)

    def __init__(self, prefixes: Iterable[str] = ()):
        prefixes = tuple(prefixes)
        for prefix in prefixes:
            require(prefix, "prefix")
        self._prefixes = prefixes

    @classmethod
    def empty(cls) -> "KeyGenerator":
        return EMPTY_KEY_GENERATOR

    @property
    def prefixes(self) -> tuple[str, ...]:
        return self._prefixes

    @property
    def is_empty(self) -> bool:
        return not self._prefixes

    def append(self, suffixes: Sequence[str]) -> "KeyGenerator":
        """Append every suffix to every prefix.

        The suffix is the outer loop, so ``[a, b].append([x, y])`` yields
        ``a.x, b.x, a.y, b.y``. An empty generator simply adopts the suffixes.
        """
        require(suffixes, "suffixes")
        if not suffixes:
            return self
        if not self._prefixes:
            return KeyGenerator(suffixes)
        return KeyGenerator(
            compute_key(prefix, suffix) for suffix in suffixes for prefix in self._prefixes
        )

    def append_index(self, index: int) -> "KeyGenerator":
        """Index every prefix, keeping the plain prefixes as fallbacks.

        ``[servers].append_index(1)`` yields ``servers[1], servers`` so that
        ``servers.port`` provides a value for every list element.
        """
        if index < 0:
            raise ValueError(f"index must be >= 0, got {index}")
        if not self._prefixes:
            return KeyGenerator([compute_indexed_key(None, index)])
        indexed = [compute_indexed_key(prefix, index) for prefix in self._prefixes]
        return KeyGenerator(indexed + list(self._prefixes))

    def compute_keys(self, keys: Sequence[str]) -> list[str]:
        """Combine every prefix with every key, prefix first."""
        require(keys, "keys")
        if not self._prefixes:
            return list(keys)
        return [compute_key(prefix, key) for prefix in self._prefixes for key in keys]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, KeyGenerator):
            return self._prefixes == other._prefixes
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._prefixes)

    def __repr__(self) -> str:
        return f"KeyGenerator({list(self._prefixes)!r})"


EMPTY_KEY_GENERATOR = KeyGenerator()


def candidate_keys(
    key_generator: KeyGenerator,
    keys: Sequence[str],
    fallback_generator: Optional[KeyGenerator] = None,
    fallback_key: Optional[str] = None,
) -> list[str]:
    """Compute the ordered, deduplicated candidate keys of a value property.

    Args:
        key_generator: Prefixes inherited from enclosing configurations.
        keys: Configured keys, in declaration order.
        fallback_generator: Fallback prefixes tried after the primary ones;
            they are never combined with the primary prefixes.
        fallback_key: Bare key tried last; ignored when blank.

    Returns:
        Candidate keys, first occurrence wins.
    """
    require(key_generator, "key_generator")
    require(keys, "keys")

    candidates = key_generator.compute_keys(keys)
    if fallback_generator is not None:
        candidates.extend(fallback_generator.compute_keys(keys))
    if fallback_key and fallback_key.strip():
        candidates.append(fallback_key)
    return ordered_unique(candidates)
