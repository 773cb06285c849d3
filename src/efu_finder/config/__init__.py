"""
Configuration management package for EFU Finder.

This package provides configuration parsing, validation, and management
functionality, plus persistence of view preferences between sessions.
"""

from .parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    get_preferences_path,
    load_config
)

__all__ = [
    'ConfigParser',
    'ConfigParseResult',
    'ConfigurationError',
    'get_preferences_path',
    'load_config'
]
