"""
YAML configuration parser for EFU Finder.

Engine settings come from an optional YAML file found next to the user
(working directory, home directory or the per-user configuration directory).
View preferences, such as the last query and sort order, live in a separate
YAML file in the per-user directory so they can be restored by a later run.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from ..models.config import EngineConfig, ViewPreferences, validate_config_dict


logger = logging.getLogger(__name__)

CONFIG_DIRECTORY_NAME = Path('.config') / 'efu-finder'
PREFERENCES_FILE_NAME = 'preferences.yaml'


def get_config_directory() -> Path:
    """Get the per-user configuration directory."""
    return Path.home() / CONFIG_DIRECTORY_NAME


def get_preferences_path() -> Path:
    """Get the default location of the saved view preferences."""
    return get_config_directory() / PREFERENCES_FILE_NAME


@dataclass
class ConfigParseResult:
    """
    Result of configuration parsing operation.

    Attributes:
        config: The parsed and validated configuration
        warnings: List of non-fatal warnings
        config_path: Path to the configuration file used
        is_default: Whether default configuration was used
    """
    config: EngineConfig
    warnings: List[str]
    config_path: Optional[Path]
    is_default: bool


class ConfigurationError(Exception):
    """Raised when configuration parsing or validation fails."""
    pass


class ConfigParser:
    """
    Loads engine configuration and view preferences from YAML.

    Sections missing from a file keep their default values, so a file only
    needs to name the settings it changes.
    """

    DEFAULT_CONFIG_NAMES = [
        '.efufinder.yaml',
        '.efufinder.yml',
        'efufinder.yaml',
        'efufinder.yml',
    ]

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the configuration parser.

        Args:
            strict_mode: If True, treat warnings as errors
        """
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def get_search_paths(self) -> List[Path]:
        """Get the directories searched for a configuration file, in order."""
        return [
            Path.cwd(),
            Path.home(),
            get_config_directory(),
        ]

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ConfigParseResult:
        """
        Load the engine configuration.

        Args:
            config_path: Explicit configuration file. If None, the search
                paths are scanned and defaults are used when nothing is found.

        Returns:
            ConfigParseResult containing parsed configuration and metadata

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if config_path:
            config_path = Path(config_path)
            if not config_path.is_file():
                raise ConfigurationError(f"Configuration file not found: {config_path}")
            config_data = self._read_yaml(config_path)
        else:
            config_path = self._discover_config_file()
            config_data = self._read_yaml(config_path) if config_path else {}
        is_default = config_path is None

        try:
            engine_config = EngineConfig.from_dict(self._validate_config_data(config_data))
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        warnings = engine_config.validate_configuration()
        warnings.extend(self._get_parser_warnings(config_data, is_default))
        if self.strict_mode and warnings:
            raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

        self.logger.info(f"Configuration loaded from {config_path or 'defaults'}")
        return ConfigParseResult(
            config=engine_config,
            warnings=warnings,
            config_path=config_path,
            is_default=is_default,
        )

    def _discover_config_file(self) -> Optional[Path]:
        """Get the first configuration file present in the search paths."""
        for directory in self.get_search_paths():
            for name in self.DEFAULT_CONFIG_NAMES:
                candidate = directory / name
                if candidate.is_file():
                    self.logger.debug(f"Using configuration file {candidate}")
                    return candidate
        return None

    def _read_yaml(self, file_path: Path) -> Dict[str, Any]:
        """
        Read a YAML mapping from disk.

        An empty document reads as an empty mapping.

        Raises:
            ConfigurationError: If the file cannot be read, is not valid YAML,
                or does not hold a mapping
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {file_path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{file_path} must contain a YAML mapping, got {type(data).__name__}")
        return data

    def _validate_config_data(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return validate_config_dict(config_data)
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def _get_parser_warnings(self, config_data: Dict[str, Any], is_default: bool) -> List[str]:
        if is_default:
            return ["No configuration file found, using default settings"]
        if not config_data:
            return ["Configuration file has no settings, using default settings"]
        return []

    def load_preferences(self, preferences_path: Optional[Union[str, Path]] = None) -> ViewPreferences:
        """
        Load saved view preferences.

        A missing file yields default preferences.

        Args:
            preferences_path: Path to the preferences file; defaults to the
                file in the user's configuration directory

        Returns:
            The saved ViewPreferences

        Raises:
            ConfigurationError: If the file exists but is unreadable or invalid
        """
        preferences_path = Path(preferences_path) if preferences_path else get_preferences_path()
        if not preferences_path.exists():
            self.logger.debug(f"No saved preferences at {preferences_path}")
            return ViewPreferences()

        data = self._read_yaml(preferences_path)
        try:
            return ViewPreferences.from_dict(data)
        except (ValueError, ValidationError) as e:
            raise ConfigurationError(f"Invalid preferences in {preferences_path}: {e}") from e

    def save_preferences(self, preferences: ViewPreferences,
                         preferences_path: Optional[Union[str, Path]] = None) -> Path:
        """
        Save view preferences to YAML.

        Args:
            preferences: Preferences to save
            preferences_path: Destination; defaults to the file in the user's
                configuration directory

        Returns:
            Path the preferences were written to

        Raises:
            ConfigurationError: If file cannot be written
        """
        preferences_path = Path(preferences_path) if preferences_path else get_preferences_path()
        try:
            preferences_path.parent.mkdir(parents=True, exist_ok=True)
            with open(preferences_path, 'w', encoding='utf-8') as f:
                yaml.safe_dump(preferences.to_dict(), f, default_flow_style=False,
                               sort_keys=False, allow_unicode=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot write preferences file {preferences_path}: {e}") from e

        self.logger.debug(f"Preferences saved to {preferences_path}")
        return preferences_path


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file (optional)
        strict_mode: Whether to treat warnings as errors

    Returns:
        ConfigParseResult containing parsed configuration

    Raises:
        ConfigurationError: If configuration is invalid
    """
    return ConfigParser(strict_mode=strict_mode).load_config(config_path)
