"""Shared exception types for forgecache.

Component-specific errors are declared beside the component that raises
them and inherit from both ``ForgeCacheError`` and a builtin exception type.
"""

from __future__ import annotations


class ForgeCacheError(Exception):
    """Base marker for every error raised by forgecache."""


class ConfigurationError(ForgeCacheError, ValueError):
    """Raised when configuration values are invalid or contradictory."""


class MissingConfigurationError(ConfigurationError):
    """Raised when a required configuration value is not set."""
