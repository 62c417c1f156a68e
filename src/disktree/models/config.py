"""
Configuration data models for DiskTree.

This module groups the process-wide filesystem defaults and the search
settings into the configuration loaded at service startup.
"""

from typing import Dict, Any
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .options import FileSystemOptions, SearchOptions


class SearchSettings(BaseModel):
    """
    Configuration for the recursive file search.

    Attributes:
        ignore_file_name: Name of the ignore-rule file searched for in ancestors
        defaults: Search options applied when a call does not override them
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    ignore_file_name: str = Field(".gitignore", min_length=1, description="Name of the ignore-rule file")
    defaults: SearchOptions = Field(default_factory=SearchOptions, description="Default search options")

    @field_validator('ignore_file_name')
    @classmethod
    def validate_ignore_file_name(cls, v: str) -> str:
        """Ensure the ignore file name is a simple name, not a path."""
        if '/' in v or '\\' in v:
            raise ValueError(f"Ignore file name must not contain path separators: {v}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'ignore_file_name': self.ignore_file_name,
            'defaults': self.defaults.to_dict(),
        }


class DiskTreeConfig(BaseModel):
    """
    Main configuration class for DiskTree.

    Attributes:
        filesystem: Process-wide filesystem defaults
        search: Search settings
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    filesystem: FileSystemOptions = Field(default_factory=FileSystemOptions, description="Filesystem defaults")
    search: SearchSettings = Field(default_factory=SearchSettings, description="Search settings")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        return {
            'filesystem': self.filesystem.to_dict(),
            'search': self.search.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiskTreeConfig':
        """Create configuration from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Encoding: {self.filesystem.encoding}"]
        parts.append(f"Overwrite: {self.filesystem.overwrite}")
        parts.append(f"Move to trash: {self.filesystem.move_to_trash}")
        parts.append(f"Ignore file: {self.search.ignore_file_name}")

        return " | ".join(parts)
