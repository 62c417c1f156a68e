"""
Filesystem and search services for DiskTree.

This module contains the stat reader, the filesystem service, the ignore
filter builder and the recursive file search.
"""

from .stat_reader import StatReader
from .filesystem import FileContent, FileSystemService
from .ignore import IgnoreRules, build_filter, find_ignore_file
from .file_search import FileSearchService

__all__ = [
    'StatReader',
    'FileContent',
    'FileSystemService',
    'IgnoreRules',
    'build_filter',
    'find_ignore_file',
    'FileSearchService',
]
