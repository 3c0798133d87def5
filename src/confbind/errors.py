"""Error taxonomy for configuration binding.

Build-time errors (raised while deriving a configuration model) derive from
``ModelBuildError``. They are deterministic: building the same shape again
fails the same way, so they are never cached.

Resolution-time errors (``NoApplicableConverterError``, ``ValueFormatError``)
surface to whoever reads the property.
"""

from typing import Optional, Sequence


class ConfigurationError(Exception):
    """Base class for all confbind errors."""


# ============================================================================
# Model building
# ============================================================================


class ModelBuildError(ConfigurationError, ValueError):
    """A configuration shape cannot be turned into a configuration model."""


class InvalidSchemaError(ModelBuildError):
    """The shape is not a configuration, or its declarations are inconsistent."""


class CycleDetectedError(ModelBuildError):
    """A configuration refers back to itself through sub-configurations.

    Attributes:
        path: Traversed ``Shape.member`` steps, ending with the step that
            reached the repeated shape.
    """

    def __init__(self, message: str, path: Sequence[str] = ()):
        super().__init__(message)
        self.path = tuple(path)


class DuplicatePropertyError(ModelBuildError):
    """Two members of a configuration collapse to the same property name."""

    def __init__(self, message: str, property_name: str, members: Sequence[str] = ()):
        super().__init__(message)
        self.property_name = property_name
        self.members = tuple(members)


class UnrecognizedMemberError(ModelBuildError):
    """No property parser claims a member of a configuration."""

    def __init__(self, message: str, member: Optional[str] = None):
        super().__init__(message)
        self.member = member


# ============================================================================
# Resolution
# ============================================================================


class NoApplicableConverterError(ConfigurationError, TypeError):
    """No registered type converter can handle the requested type."""


class ValueFormatError(ConfigurationError, ValueError):
    """A raw value cannot be converted to, or rendered from, its target type."""


class DecryptionError(ValueFormatError):
    """An encrypted value cannot be decrypted."""
