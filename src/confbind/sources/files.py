"""File backed configuration sources: ``.properties``, YAML and JSON.

YAML and JSON documents are flattened into dotted keys:

    database:
      url: jdbc:h2:mem
      replicas:
        - host: a
        - host: b

becomes ``database.url``, ``database.replicas[0].host`` and
``database.replicas[1].host``.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..errors import ConfigurationError
from ..keys import compute_indexed_key, compute_key
from .base import MapConfigurationSource

logger = logging.getLogger(__name__)

DOCUMENT_KEY = "document"

PathLike = Union[str, Path]


class ConfigurationFileError(ConfigurationError):
    """A configuration file cannot be read or parsed."""


# =============================================================================
# Flattening
# =============================================================================


def flatten(document: Any) -> dict[str, Optional[str]]:
    """Flatten a parsed YAML/JSON document into ``key -> string`` entries.

    A document whose root is not a mapping is stored under ``document``.
    Booleans are written ``true``/``false``, None stays an explicit null and
    other scalars are converted with ``str``.
    """
    if not isinstance(document, Mapping):
        document = {DOCUMENT_KEY: document}
    result: dict[str, Optional[str]] = {}
    for key, value in document.items():
        _flatten_into(result, _mapping_key(None, key), value)
    return result


def _mapping_key(path: Optional[str], key: Any) -> str:
    if isinstance(key, int) and not isinstance(key, bool):
        return compute_indexed_key(path, key)
    if isinstance(key, bool):
        key = "true" if key else "false"
    return compute_key(path, str(key))


def _flatten_into(result: dict[str, Optional[str]], path: str, value: Any) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten_into(result, _mapping_key(path, key), item)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten_into(result, compute_indexed_key(path, index), item)
    elif value is None:
        result[path] = None
    elif isinstance(value, bool):
        result[path] = "true" if value else "false"
    else:
        result[path] = str(value)


# =============================================================================
# .properties
# =============================================================================

_PROPERTY_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_PROPERTY_UNESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _unescape_property(text: str) -> str:
    def replace(match: re.Match) -> str:
        sequence = match.group(1)
        if len(sequence) == 5:
            return chr(int(sequence[1:], 16))
        return _PROPERTY_UNESCAPES.get(sequence, sequence)

    return _PROPERTY_ESCAPE.sub(replace, text)


def _logical_lines(text: str):
    """Join continuation lines (ending with an odd number of backslashes)."""
    pending = None
    for raw in text.splitlines():
        line = raw.lstrip(" \t\f")
        if pending is None:
            if not line or line[0] in "#!":
                continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue
        yield (pending or "") + line
        pending = None
    if pending is not None:
        yield pending


def _split_property(line: str) -> tuple[str, str]:
    index = 0
    length = len(line)
    while index < length:
        char = line[index]
        if char == "\\":
            index += 2
            continue
        if char in "=: \t\f":
            break
        index += 1
    key = line[:index]

    # skip whitespace, one separator, then whitespace again
    while index < length and line[index] in " \t\f":
        index += 1
    if index < length and line[index] in "=:":
        index += 1
    while index < length and line[index] in " \t\f":
        index += 1
    return _unescape_property(key), _unescape_property(line[index:])


def parse_properties(text: str) -> dict[str, str]:
    """Parse the Java ``.properties`` format.

    Supports ``=``, ``:`` and whitespace separators, ``#`` and ``!``
    comments, backslash line continuations and escape sequences.
    """
    return dict(_split_property(line) for line in _logical_lines(text))


# =============================================================================
# Sources
# =============================================================================


def _read(path: PathLike) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationFileError(f"Cannot read configuration file {path}: {e}") from e


class PropertiesConfigurationSource(MapConfigurationSource):
    """Source holding the entries of a ``.properties`` file."""

    def __init__(self, values: Mapping[str, Optional[str]], path: Optional[PathLike] = None):
        super().__init__(dict(values))
        self.path = path

    @classmethod
    def from_file(cls, path: PathLike) -> "PropertiesConfigurationSource":
        values = parse_properties(_read(path))
        logger.info("Loaded %d properties from %s", len(values), path)
        return cls(values, path)

    @classmethod
    def from_string(cls, text: str) -> "PropertiesConfigurationSource":
        return cls(parse_properties(text))


class YamlConfigurationSource(MapConfigurationSource):
    """Source holding a flattened YAML document."""

    def __init__(self, document: Any, path: Optional[PathLike] = None):
        super().__init__(flatten(document))
        self.path = path

    @classmethod
    def from_file(cls, path: PathLike) -> "YamlConfigurationSource":
        return cls.from_string(_read(path), path)

    @classmethod
    def from_string(cls, text: str, path: Optional[PathLike] = None) -> "YamlConfigurationSource":
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(f"Invalid YAML in {path or 'string'}: {e}") from e
        source = cls(document if document is not None else {}, path)
        logger.info("Loaded %d entries from YAML %s", len(source), path or "string")
        return source


class JsonConfigurationSource(MapConfigurationSource):
    """Source holding a flattened JSON document."""

    def __init__(self, document: Any, path: Optional[PathLike] = None):
        super().__init__(flatten(document))
        self.path = path

    @classmethod
    def from_file(cls, path: PathLike) -> "JsonConfigurationSource":
        return cls.from_string(_read(path), path)

    @classmethod
    def from_string(cls, text: str, path: Optional[PathLike] = None) -> "JsonConfigurationSource":
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigurationFileError(f"Invalid JSON in {path or 'string'}: {e}") from e
        source = cls(document, path)
        logger.info("Loaded %d entries from JSON %s", len(source), path or "string")
        return source


def load_file_source(path: PathLike) -> MapConfigurationSource:
    """Create a source for a file, picking the format from its extension.

    Raises:
        ConfigurationFileError: If the extension is not supported.
    """
    suffix = Path(path).suffix.lower()
    if suffix in (".yaml", ".yml"):
        return YamlConfigurationSource.from_file(path)
    if suffix == ".json":
        return JsonConfigurationSource.from_file(path)
    if suffix == ".properties":
        return PropertiesConfigurationSource.from_file(path)
    raise ConfigurationFileError(f"Unsupported configuration file type: {path}")
