"""
Unit tests for configuration parser.

Tests the YAML configuration parsing, validation, and error handling
functionality of the ConfigParser class.
"""

import pytest
import tempfile
import os
import yaml
from pathlib import Path
from unittest.mock import patch

from efu_finder.config.parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    load_config,
)
from efu_finder.models.config import EngineConfig, ViewPreferences
from efu_finder.models.search_results import SortKey


def write_yaml(directory, name, data):
    path = Path(directory) / name
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f)
    return path


class TestConfigParser:
    """Test cases for ConfigParser class."""

    def test_init_default(self):
        """Test default initialization."""
        parser = ConfigParser()
        assert parser.strict_mode is False
        assert parser.DEFAULT_CONFIG_NAMES == [
            '.efufinder.yaml',
            '.efufinder.yml',
            'efufinder.yaml',
            'efufinder.yml',
        ]

    def test_load_config_with_valid_file(self):
        """Test loading configuration from valid YAML file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'config.yaml', {
                'paging': {'page_size': 50},
                'sort': {'key': 'Size', 'ascending': False},
            })

            result = ConfigParser().load_config(path)

        assert isinstance(result, ConfigParseResult)
        assert isinstance(result.config, EngineConfig)
        assert result.config.paging.page_size == 50
        assert result.config.sort.key is SortKey.SIZE
        assert result.config.display.placeholder == "—"
        assert result.config_path == path
        assert result.is_default is False

    def test_load_config_file_not_found(self):
        """Test loading configuration from non-existent file."""
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            ConfigParser().load_config("/nonexistent/config.yaml")

    def test_load_config_invalid_yaml(self):
        """Test loading configuration with invalid YAML syntax."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("paging: [unclosed\n")
            temp_path = f.name

        try:
            with pytest.raises(ConfigurationError, match="Invalid YAML syntax"):
                ConfigParser().load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_empty_file(self):
        """Test that an empty file yields defaults with a warning."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            temp_path = f.name

        try:
            result = ConfigParser().load_config(temp_path)

            assert result.config == EngineConfig()
            assert any("no settings" in w for w in result.warnings)
        finally:
            os.unlink(temp_path)

    def test_load_config_non_dict_yaml(self):
        """Test that a YAML list is rejected."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml.dump(['paging'], f)
            temp_path = f.name

        try:
            with pytest.raises(ConfigurationError, match="must contain a YAML mapping"):
                ConfigParser().load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_invalid_values(self):
        """Test that validation failures become ConfigurationError."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'config.yaml', {'paging': {'page_size': -1}})

            with pytest.raises(ConfigurationError, match="Invalid configuration"):
                ConfigParser().load_config(path)

    def test_load_config_unknown_section(self):
        """Test that unknown sections are rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'config.yaml', {'roots': ['.']})

            with pytest.raises(ConfigurationError, match="Unknown configuration sections"):
                ConfigParser().load_config(path)

    def test_load_config_no_file_uses_defaults(self):
        """Test loading configuration without file uses defaults."""
        parser = ConfigParser()

        with patch.object(parser, '_discover_config_file', return_value=None):
            result = parser.load_config()

        assert result.config == EngineConfig()
        assert result.config_path is None
        assert result.is_default is True
        assert any("No configuration file found" in w for w in result.warnings)

    def test_load_config_strict_mode_with_warnings(self):
        """Test strict mode raises error on warnings."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'config.yaml', {'paging': {'page_size': 5000}})

            with pytest.raises(ConfigurationError, match="Configuration warnings in strict mode"):
                ConfigParser(strict_mode=True).load_config(path)

    def test_discover_config_current_dir(self):
        """Test finding configuration in current directory."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = write_yaml(temp_dir, '.efufinder.yaml', {'paging': {'page_size': 30}})

            with patch('pathlib.Path.cwd', return_value=Path(temp_dir)):
                result = ConfigParser().load_config()

            assert result.config_path == config_file
            assert result.config.paging.page_size == 30
            assert result.is_default is False

    def test_discover_config_user_directory(self):
        """Test finding configuration in the per-user config directory."""
        with tempfile.TemporaryDirectory() as home_dir, tempfile.TemporaryDirectory() as work_dir:
            config_dir = Path(home_dir) / '.config' / 'efu-finder'
            config_dir.mkdir(parents=True)
            config_file = write_yaml(config_dir, 'efufinder.yml', {'search': {'regex_mode': True}})

            with patch('pathlib.Path.cwd', return_value=Path(work_dir)), \
                 patch('pathlib.Path.home', return_value=Path(home_dir)):
                result = ConfigParser().load_config()

            assert result.config_path == config_file
            assert result.config.search.regex_mode is True

    def test_discover_config_not_found(self):
        """Test configuration file not found in search paths."""
        with tempfile.TemporaryDirectory() as temp_dir:
            empty_path = Path(temp_dir)

            with patch('pathlib.Path.cwd', return_value=empty_path), \
                 patch('pathlib.Path.home', return_value=empty_path):
                assert ConfigParser()._discover_config_file() is None

    def test_read_yaml_permission_error(self):
        """Test YAML file loading with permission error."""
        parser = ConfigParser()

        with patch('builtins.open', side_effect=PermissionError("Access denied")):
            with pytest.raises(ConfigurationError, match="Cannot read"):
                parser._read_yaml(Path("/test/path"))


class TestPreferences:
    """Test cases for persisting view preferences."""

    def test_save_and_load(self):
        """Test that saved preferences load back unchanged."""
        prefs = ViewPreferences(query='path:"My Docs" !*.tmp', regex_mode=False,
                                sort_key="Date Modified", sort_ascending=False,
                                page_size=50, theme="dark")

        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / 'prefs.yaml'
            parser = ConfigParser()

            written = parser.save_preferences(prefs, path)
            loaded = parser.load_preferences(path)

        assert written == path
        assert loaded == prefs

    def test_default_location(self):
        """Test that preferences default to the per-user config directory."""
        with tempfile.TemporaryDirectory() as home_dir:
            with patch('pathlib.Path.home', return_value=Path(home_dir)):
                parser = ConfigParser()
                written = parser.save_preferences(ViewPreferences(query="abc"))
                loaded = parser.load_preferences()

            assert written == Path(home_dir) / '.config' / 'efu-finder' / 'preferences.yaml'
            assert loaded.query == "abc"

    def test_missing_file_gives_defaults(self):
        """Test that a missing preferences file yields defaults."""
        prefs = ConfigParser().load_preferences("/nonexistent/prefs.yaml")

        assert prefs == ViewPreferences()

    def test_invalid_preferences(self):
        """Test that invalid stored preferences raise ConfigurationError."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'prefs.yaml', {'page_size': 0})

            with pytest.raises(ConfigurationError, match="Invalid preferences"):
                ConfigParser().load_preferences(path)


class TestConvenienceFunctions:
    """Test cases for module-level convenience functions."""

    def test_load_config_function(self):
        """Test the load_config convenience function."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'config.yaml', {'search': {'include_directories': False}})

            result = load_config(path)

        assert result.config.search.include_directories is False

    def test_load_config_function_strict_mode(self):
        """Test the load_config convenience function in strict mode."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_yaml(temp_dir, 'config.yaml', {'search': {'regex_mode': True}})

            with pytest.raises(ConfigurationError):
                load_config(path, strict_mode=True)
