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

from disktree.config.parser import (
    ConfigParser,
    ConfigParseResult,
    ConfigurationError,
    load_config,
    validate_config_file,
    create_config_template
)
from disktree.models.config import DiskTreeConfig


def _write_yaml(data) -> str:
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        if isinstance(data, str):
            f.write(data)
        else:
            yaml.dump(data, f)
        return f.name


class TestConfigParser:
    """Test cases for ConfigParser class."""

    def test_init_default(self):
        """Test default initialization."""
        parser = ConfigParser()
        assert parser.strict_mode is False
        assert parser.DEFAULT_CONFIG_NAMES == [
            '.disktree.yaml',
            '.disktree.yml',
            'disktree.yaml',
            'disktree.yml',
        ]

    def test_load_config_with_valid_file(self):
        """Test loading configuration from valid YAML file."""
        temp_path = _write_yaml({
            'filesystem': {'encoding': 'latin-1', 'move_to_trash': True},
            'search': {'defaults': {'limit': 25}},
        })

        try:
            result = ConfigParser().load_config(temp_path)

            assert isinstance(result, ConfigParseResult)
            assert isinstance(result.config, DiskTreeConfig)
            assert result.config.filesystem.encoding == 'latin-1'
            assert result.config.search.defaults.limit == 25
            assert result.config_path == Path(temp_path)
            assert result.is_default is False
            assert result.warnings == []
        finally:
            os.unlink(temp_path)

    def test_load_config_file_not_found(self):
        """Test loading configuration from non-existent file."""
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            ConfigParser().load_config("/nonexistent/config.yaml")

    def test_load_config_invalid_yaml(self):
        """Test loading configuration with invalid YAML syntax."""
        temp_path = _write_yaml("filesystem:\n  encoding: [\n")

        try:
            with pytest.raises(ConfigurationError, match="Invalid YAML syntax"):
                ConfigParser().load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_empty_file(self):
        """Test that an empty file yields the default configuration."""
        temp_path = _write_yaml("")

        try:
            result = ConfigParser().load_config(temp_path)
            assert result.config == DiskTreeConfig()
            assert result.config_path == Path(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_non_dict_yaml(self):
        """Test loading configuration with non-dictionary YAML."""
        temp_path = _write_yaml("- item1\n- item2")

        try:
            with pytest.raises(ConfigurationError, match="must contain a YAML object"):
                ConfigParser().load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_invalid_values(self):
        """Test that validation failures are reported as configuration errors."""
        temp_path = _write_yaml({'filesystem': {'encoding': 'no-such-codec'}})

        try:
            with pytest.raises(ConfigurationError, match="Configuration validation failed"):
                ConfigParser().load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_section_must_be_mapping(self):
        """Test that scalar sections are rejected."""
        temp_path = _write_yaml({'filesystem': 'utf8'})

        try:
            with pytest.raises(ConfigurationError, match="must be a mapping"):
                ConfigParser().load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_load_config_no_file_uses_defaults(self):
        """Test loading configuration without file uses defaults."""
        parser = ConfigParser()

        with patch.object(parser, '_find_and_load_config', return_value=(None, None)):
            result = parser.load_config()

        assert result.config == DiskTreeConfig()
        assert result.config_path is None
        assert result.is_default is True
        assert "No configuration file found, using default settings" in result.warnings

    def test_unknown_section_warning(self):
        """Test that unknown sections are reported and ignored."""
        temp_path = _write_yaml({'roots': ['.'], 'filesystem': {'overwrite': False}})

        try:
            result = ConfigParser().load_config(temp_path)
            assert any("Unknown configuration section 'roots'" in w for w in result.warnings)
        finally:
            os.unlink(temp_path)

    def test_load_config_strict_mode_with_warnings(self):
        """Test strict mode raises error on warnings."""
        temp_path = _write_yaml({'filesystem': {'move_to_trash': False}})

        try:
            with pytest.raises(ConfigurationError, match="Configuration warnings in strict mode"):
                ConfigParser(strict_mode=True).load_config(temp_path)
        finally:
            os.unlink(temp_path)

    def test_find_and_load_config_current_dir(self):
        """Test finding configuration in current directory."""
        config_data = {'filesystem': {'overwrite': True}}

        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / '.disktree.yaml'
            with open(config_file, 'w') as f:
                yaml.dump(config_data, f)

            with patch('pathlib.Path.cwd', return_value=Path(temp_dir)):
                config_path, data = ConfigParser()._find_and_load_config()

            assert config_path == config_file
            assert data == config_data

    def test_find_and_load_config_not_found(self):
        """Test configuration file not found in search paths."""
        with tempfile.TemporaryDirectory() as temp_dir:
            empty_path = Path(temp_dir)

            with patch('pathlib.Path.cwd', return_value=empty_path), \
                 patch('pathlib.Path.home', return_value=empty_path):
                config_path, data = ConfigParser()._find_and_load_config()

            assert config_path is None
            assert data is None

    def test_save_and_reload(self, tmp_path):
        """Test that a saved configuration loads back unchanged."""
        config = DiskTreeConfig.from_dict({
            'filesystem': {'overwrite': True, 'encoding': 'utf-16'},
            'search': {'ignore_file_name': '.ignore', 'defaults': {'fuzzy_match': False}},
        })
        output = tmp_path / "conf" / "disktree.yaml"

        parser = ConfigParser()
        parser.save_config(config, output)

        content = output.read_text()
        assert content.startswith("# DiskTree Configuration")
        assert parser.load_config(output).config == config

    def test_validate_config_file(self, tmp_path):
        """Test file validation helper."""
        good = tmp_path / "good.yaml"
        good.write_text("filesystem:\n  overwrite: true\n")
        bad = tmp_path / "bad.yaml"
        bad.write_text("search:\n  defaults:\n    limit: -5\n")

        assert validate_config_file(good) == []
        assert len(validate_config_file(bad)) == 1
        assert validate_config_file(tmp_path / "missing.yaml") == [
            f"Configuration file not found: {tmp_path / 'missing.yaml'}"
        ]

    def test_create_config_template(self, tmp_path):
        """Test that the template is a loadable default configuration."""
        output = tmp_path / "template.yaml"
        create_config_template(output)

        result = load_config(output)
        assert result.config == DiskTreeConfig()
