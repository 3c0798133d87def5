"""Tests for value processors and decrypters."""

import pytest

from confbind.errors import DecryptionError
from confbind.interfaces import ConfigurationValue
from confbind.processors import NoOpDecrypter, ValueDecryptingProcessor
from confbind.testing import MockDecrypter


def encrypted(value, provider="default"):
    return ConfigurationValue(key="db.password", value=value, encryption_provider=provider)


class TestNoOpDecrypter:
    """Tests for NoOpDecrypter."""

    def test_default_name(self):
        """Test that the placeholder claims the default provider."""
        assert NoOpDecrypter().name == "default"

    def test_refuses_to_decrypt(self):
        """Test that decryption always fails."""
        with pytest.raises(DecryptionError, match="decryption is not supported"):
            NoOpDecrypter().decrypt("anything")


class TestValueDecryptingProcessor:
    """Tests for ValueDecryptingProcessor."""

    def test_decrypts_matching_provider(self, decrypter):
        """Test that values tagged with the decrypter name are decrypted."""
        processor = ValueDecryptingProcessor(decrypter)

        result = processor.process(encrypted("enc:terces"))

        assert result.value == "secret"
        assert not result.is_encrypted

    def test_plaintext_passes_through(self, decrypter):
        """Test that untagged values are left alone."""
        processor = ValueDecryptingProcessor(decrypter)
        value = ConfigurationValue(key="k", value="plain")

        assert processor.process(value).value == "plain"
        assert decrypter.decrypted == []

    def test_other_provider_passes_through(self, decrypter):
        """Test that chained processors only handle their own provider."""
        value = ValueDecryptingProcessor(decrypter).process(encrypted("enc:x", provider="vault"))

        assert value.is_encrypted
        assert value.encryption_provider == "vault"

    def test_chained_processors(self):
        """Test that each provider is decrypted by its own processor."""
        processors = [
            ValueDecryptingProcessor(MockDecrypter("default")),
            ValueDecryptingProcessor(MockDecrypter("vault")),
        ]
        value = encrypted("enc:tluav", provider="vault")

        for processor in processors:
            value = processor.process(value)

        assert value.value == "vault"

    def test_null_value_is_untagged(self, decrypter):
        """Test that explicit nulls need no decryption."""
        result = ValueDecryptingProcessor(decrypter).process(encrypted(None))

        assert result.value is None
        assert not result.is_encrypted

    def test_decrypter_failures_are_wrapped(self, decrypter):
        """Test that arbitrary decrypter errors become DecryptionError."""
        processor = ValueDecryptingProcessor(decrypter)

        with pytest.raises(DecryptionError, match="Failed to decrypt value of 'db.password' with 'default'"):
            processor.process(encrypted("not-encrypted"))

    def test_default_decrypter_is_noop(self):
        """Test the processor without a decrypter."""
        processor = ValueDecryptingProcessor()

        assert isinstance(processor.decrypter, NoOpDecrypter)
        with pytest.raises(DecryptionError, match="not supported"):
            processor.process(encrypted("enc:x"))
