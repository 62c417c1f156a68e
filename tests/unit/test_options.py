"""
Unit tests for option models.

Tests process-wide defaults, per-call overrides and search option merging.
"""

import pytest
from pydantic import ValidationError

from disktree.models.options import CallOptions, FileSystemOptions, SearchOptions, coerce_call_options
from disktree.models.config import DiskTreeConfig, SearchSettings


class TestFileSystemOptions:
    """Test cases for FileSystemOptions."""

    def test_defaults(self):
        """Test default option values."""
        options = FileSystemOptions()
        assert options.encoding == "utf8"
        assert options.overwrite is False
        assert options.recursive is True
        assert options.move_to_trash is True

    def test_resolve_without_overrides(self):
        """Test that resolving nothing returns the defaults."""
        options = FileSystemOptions(overwrite=True)
        assert options.resolve(None) == options

    def test_resolve_prefers_call_value(self):
        """Test that per-call values win over defaults."""
        options = FileSystemOptions()
        resolved = options.resolve(CallOptions(overwrite=True, encoding="latin-1"))

        assert resolved.overwrite is True
        assert resolved.encoding == "latin-1"
        assert resolved.move_to_trash is True

    def test_resolve_explicit_false_overrides_true(self):
        """Test that an explicit False is not mistaken for 'unset'."""
        options = FileSystemOptions(move_to_trash=True)
        assert options.resolve({'move_to_trash': False}).move_to_trash is False

    def test_resolve_does_not_mutate_defaults(self):
        """Test that the process-wide options stay unchanged."""
        options = FileSystemOptions()
        options.resolve({'overwrite': True})
        assert options.overwrite is False

    def test_invalid_encoding(self):
        """Test codec validation."""
        with pytest.raises(ValidationError):
            FileSystemOptions(encoding="not-a-codec")
        with pytest.raises(ValidationError):
            CallOptions(encoding="not-a-codec")

    def test_unknown_option_rejected(self):
        """Test that misspelled options are reported."""
        with pytest.raises(ValidationError):
            coerce_call_options({'overwirte': True})

    def test_options_are_immutable(self):
        """Test that options cannot be changed after construction."""
        options = FileSystemOptions()
        with pytest.raises(ValidationError):
            options.overwrite = True


class TestSearchOptions:
    """Test cases for SearchOptions."""

    def test_defaults(self):
        """Test default search options."""
        options = SearchOptions()
        assert options.fuzzy_match is True
        assert options.limit is None
        assert options.use_gitignore is True

    def test_merge_only_applies_set_fields(self):
        """Test that unset fields keep the configured defaults."""
        defaults = SearchOptions(fuzzy_match=False, limit=10)
        merged = defaults.merge({'limit': 3})

        assert merged.fuzzy_match is False
        assert merged.limit == 3

        merged = defaults.merge(SearchOptions(use_gitignore=False))
        assert merged.limit == 10
        assert merged.use_gitignore is False

    def test_merge_none(self):
        """Test merging no overrides."""
        defaults = SearchOptions(limit=5)
        assert defaults.merge(None) is defaults

    def test_negative_limit_rejected(self):
        """Test limit validation."""
        with pytest.raises(ValidationError):
            SearchOptions(limit=-1)


class TestDiskTreeConfig:
    """Test cases for the top-level configuration."""

    def test_defaults(self):
        """Test default configuration."""
        config = DiskTreeConfig()
        assert config.filesystem == FileSystemOptions()
        assert config.search.ignore_file_name == ".gitignore"
        assert config.search.defaults == SearchOptions()

    def test_from_dict(self):
        """Test building configuration from nested dictionaries."""
        config = DiskTreeConfig.from_dict({
            'filesystem': {'encoding': 'utf-16', 'move_to_trash': False},
            'search': {'ignore_file_name': '.ignore', 'defaults': {'limit': 50}},
        })

        assert config.filesystem.encoding == 'utf-16'
        assert config.filesystem.move_to_trash is False
        assert config.search.ignore_file_name == '.ignore'
        assert config.search.defaults.limit == 50

    def test_ignore_file_name_must_be_simple(self):
        """Test that the ignore file name cannot be a path."""
        with pytest.raises(ValidationError):
            SearchSettings(ignore_file_name="sub/.gitignore")

    def test_to_dict_round_trip(self):
        """Test that to_dict output is accepted by from_dict."""
        config = DiskTreeConfig.from_dict({'filesystem': {'overwrite': True}})
        assert DiskTreeConfig.from_dict(config.to_dict()) == config

    def test_str(self):
        """Test string representation."""
        text = str(DiskTreeConfig())
        assert "Encoding: utf8" in text
        assert "Ignore file: .gitignore" in text
