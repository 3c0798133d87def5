"""Testing utilities for confbind."""

from .mocks import CountingTypeConverter, MockConfigurationSource, MockDecrypter

__all__ = [
    "CountingTypeConverter",
    "MockConfigurationSource",
    "MockDecrypter",
]
