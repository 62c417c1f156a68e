"""
Data models for DiskTree.

This module contains the stat node variants and the option models shared by
the filesystem and search services.
"""

from .file_stat import FileEntry, DirectoryEntry, StatNode, parse_stat
from .options import CallOptions, FileSystemOptions, SearchOptions
from .config import DiskTreeConfig, SearchSettings

__all__ = [
    'FileEntry',
    'DirectoryEntry',
    'StatNode',
    'parse_stat',
    'CallOptions',
    'FileSystemOptions',
    'SearchOptions',
    'DiskTreeConfig',
    'SearchSettings',
]
