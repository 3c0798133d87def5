"""Value processors applied to raw values before conversion."""

import logging
from typing import Mapping, Optional

from .declarations import DEFAULT_ENCRYPTION_PROVIDER
from .errors import DecryptionError
from .interfaces import ConfigurationValue, IValueDecrypter, IValueProcessor
from .utils import require

logger = logging.getLogger(__name__)


class NoOpDecrypter(IValueDecrypter):
    """Placeholder decrypter which refuses to decrypt anything.

    Registered under the default provider name so encrypted values fail with
    a clear error until a real decrypter is configured.
    """

    def __init__(self, name: str = DEFAULT_ENCRYPTION_PROVIDER):
        self._name = require(name, "name")

    @property
    def name(self) -> str:
        return self._name

    def decrypt(self, value: str, attributes: Optional[Mapping[str, Optional[str]]] = None) -> str:
        raise DecryptionError("Configuration value decryption is not supported")


class ValueDecryptingProcessor(IValueProcessor):
    """Decrypts values tagged with the decrypter's provider name.

    Values tagged with another provider pass through untouched so several
    decrypting processors can be chained.
    """

    def __init__(self, decrypter: Optional[IValueDecrypter] = None):
        self._decrypter = decrypter or NoOpDecrypter()

    @property
    def decrypter(self) -> IValueDecrypter:
        return self._decrypter

    def process(self, value: ConfigurationValue) -> ConfigurationValue:
        require(value, "value")
        if not value.is_encrypted or value.encryption_provider != self._decrypter.name:
            return value
        if value.value is None:
            value.set_decrypted_value(None)
            return value

        try:
            decrypted = self._decrypter.decrypt(value.value, value.attributes)
        except DecryptionError:
            raise
        except Exception as e:
            raise DecryptionError(
                f"Failed to decrypt value of '{value.key}' with '{self._decrypter.name}': {e}"
            ) from e
        logger.debug("Decrypted value of '%s' with '%s'", value.key, self._decrypter.name)
        value.set_decrypted_value(decrypted)
        return value
