"""Configuration source reading environment variables."""

import os
import re
from typing import Iterator, Mapping, Optional

from ..interfaces import ABSENT, ConfigurationEntry, IIterableConfigurationSource, OptionalValue
from ..utils import require

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]+")


def environment_variable_name(key: str, prefix: Optional[str] = None) -> str:
    """Map a configuration key to an environment variable name.

    ``database.replicas[0].host-name`` with prefix ``APP`` becomes
    ``APP_DATABASE_REPLICAS_0_HOST_NAME``.
    """
    name = _NON_ALPHANUMERIC.sub("_", key).strip("_").upper()
    return f"{prefix.upper()}_{name}" if prefix else name


class EnvironmentConfigurationSource(IIterableConfigurationSource):
    """Resolves keys against environment variables.

    Args:
        prefix: Prefix of every variable name, e.g. ``APP``.
        environ: Variables to read; ``os.environ`` when omitted.
    """

    def __init__(self, prefix: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        self.prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def get_value(self, key: str, attributes: Optional[Mapping[str, Optional[str]]] = None) -> OptionalValue[str]:
        require(key, "key")
        name = environment_variable_name(key, self.prefix)
        if name not in self._environ:
            return ABSENT
        return OptionalValue.of(self._environ[name])

    def get_all_entries(self) -> Iterator[ConfigurationEntry]:
        """Entries of the variables carrying the prefix, named as variables."""
        marker = f"{self.prefix.upper()}_" if self.prefix else ""
        for name, value in list(self._environ.items()):
            if name.startswith(marker):
                yield ConfigurationEntry(name, value)
