"""Error types shared by the core and adapters."""

from __future__ import annotations


class ConfigError(ValueError):
    """A required configuration field is missing or malformed."""


class DeliveryError(RuntimeError):
    """A chat webhook rejected a message or could not be reached."""


class QuotaExceededError(RuntimeError):
    """The property store has no free slot for a new key."""


class UploadError(RuntimeError):
    """Video hosting did not return an id for an uploaded recording."""
