"""Exception hierarchy for psmckit.

Every error raised on purpose by the package derives from
:class:`PSMCKitError`, so callers can catch the whole family at once.
"""

from __future__ import annotations


class PSMCKitError(Exception):
    """Base class for all psmckit errors."""


class ConfigurationError(PSMCKitError):
    """Inputs of an estimation step are inconsistent with each other.

    Raised before any optimisation starts; never retried.
    """


class ShapeMismatchError(ConfigurationError):
    """An array does not have the shape implied by the model."""

    def __init__(self, name: str, expected: tuple[int, ...], actual: tuple[int, ...]):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"'{name}' must have shape {expected}, got {actual}"
        )


class PatternError(ConfigurationError):
    """A time segment pattern is malformed or does not cover the model."""


class ModelError(PSMCKitError):
    """A coalescent model was constructed with invalid parameters."""


class ParseError(PSMCKitError):
    """A problem file could not be parsed."""
