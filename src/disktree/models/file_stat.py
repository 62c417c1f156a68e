"""
Stat node data models for DiskTree.

A stat node is a point-in-time snapshot of one filesystem entry. Files and
directories are distinct variants so that a node can never carry both a size
and a list of children.
"""

from typing import Dict, List, Literal, Optional, Any, Union
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .. import uri as file_uri


class FileEntry(BaseModel):
    """
    Snapshot of a regular file.

    Attributes:
        uri: Resource locator of the file
        last_modification: Modification time in milliseconds since the epoch
        size: File size in bytes
    """

    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., min_length=1, description="Resource locator of the entry")
    last_modification: int = Field(..., description="Modification time in milliseconds since the epoch")
    is_directory: Literal[False] = Field(False, description="Variant discriminant")
    size: int = Field(..., ge=0, description="File size in bytes")

    @field_validator('uri')
    @classmethod
    def validate_uri(cls, v: str) -> str:
        """Reject locators that do not map onto a native path."""
        file_uri.fs_path(v)
        return v

    def get_path(self) -> Path:
        """Get the native path of this entry."""
        return file_uri.fs_path(self.uri)

    def get_name(self) -> str:
        """Get the simple name of this entry."""
        return self.get_path().name

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation."""
        return {
            'uri': self.uri,
            'lastModification': self.last_modification,
            'isDirectory': False,
            'size': self.size,
        }


class DirectoryEntry(BaseModel):
    """
    Snapshot of a directory.

    ``children`` holds the entries that resolved when the directory was read
    with a depth of at least one, in directory-listing order. A directory read
    at depth zero has an empty ``children`` list; callers track the depth they
    asked for.

    Attributes:
        uri: Resource locator of the directory
        last_modification: Modification time in milliseconds since the epoch
        children: Child entries
    """

    model_config = ConfigDict(frozen=True)

    uri: str = Field(..., min_length=1, description="Resource locator of the entry")
    last_modification: int = Field(..., description="Modification time in milliseconds since the epoch")
    is_directory: Literal[True] = Field(True, description="Variant discriminant")
    children: List[Union['FileEntry', 'DirectoryEntry']] = Field(
        default_factory=list, description="Child entries in listing order"
    )

    @field_validator('uri')
    @classmethod
    def validate_uri(cls, v: str) -> str:
        """Reject locators that do not map onto a native path."""
        file_uri.fs_path(v)
        return v

    def get_path(self) -> Path:
        """Get the native path of this entry."""
        return file_uri.fs_path(self.uri)

    def get_name(self) -> str:
        """Get the simple name of this entry."""
        return self.get_path().name

    def find_child(self, name: str) -> Optional[Union['FileEntry', 'DirectoryEntry']]:
        """Find a resolved child by simple name."""
        for child in self.children:
            if child.get_name() == name:
                return child
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire representation."""
        return {
            'uri': self.uri,
            'lastModification': self.last_modification,
            'isDirectory': True,
            'children': [child.to_dict() for child in self.children],
        }


DirectoryEntry.model_rebuild()

StatNode = Union[FileEntry, DirectoryEntry]

_stat_adapter = TypeAdapter(StatNode)


def parse_stat(data: Dict[str, Any]) -> StatNode:
    """
    Rebuild a stat node from its wire representation.

    Args:
        data: Dictionary with ``uri``, ``lastModification``, ``isDirectory``
            and either ``size`` or ``children``

    Returns:
        FileEntry or DirectoryEntry

    Raises:
        ValueError: If the dictionary does not describe a valid node
    """
    is_directory = data.get('isDirectory')
    if is_directory is None:
        raise ValueError("Stat node is missing the 'isDirectory' field")

    if is_directory and 'size' in data:
        raise ValueError("A directory node cannot carry a size")
    if not is_directory and 'children' in data:
        raise ValueError("A file node cannot carry children")

    normalized = {
        'uri': data.get('uri'),
        'last_modification': data.get('lastModification'),
        'is_directory': bool(is_directory),
    }
    if is_directory:
        normalized['children'] = [parse_stat(child) for child in data.get('children', [])]
    else:
        normalized['size'] = data.get('size')

    return _stat_adapter.validate_python(normalized)
