"""Exception types raised by the orbit sandbox core."""
from __future__ import annotations


class SandboxError(Exception):
    """Base class for errors raised by the simulation core."""


class ConfigurationError(SandboxError, ValueError):
    """Raised when a body, craft or simulation configuration is invalid.

    Invalid configuration is fatal to the object being created and is never
    retried; the message names the offending field.
    """


class EphemerisError(SandboxError):
    """Raised when ephemeris data cannot be loaded or parsed."""


class RunDataError(SandboxError):
    """Raised when a recorded run directory is missing or incomplete."""


__all__ = ["ConfigurationError", "EphemerisError", "RunDataError", "SandboxError"]
