"""Scrutineer package root."""

from scrutineer.exceptions import ConfigurationError, FatalProbeError, ScrutineerError

__all__ = ["__version__", "ConfigurationError", "FatalProbeError", "ScrutineerError"]

__version__ = "0.1.0"
