"""
Recursive file search for DiskTree.

Walks a directory tree depth-first, skipping entries excluded by the ignore
filter, and collects the files whose path matches a query. The walk stops as
soon as the requested number of matches has been collected.
"""

import asyncio
import os
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
import logging

from .. import uri as file_uri
from ..errors import ErrorKind, ResourceNotFoundError, TypeConflictError, classify_os_error
from ..models.config import DiskTreeConfig
from ..models.options import SearchOptions
from .ignore import DEFAULT_IGNORE_FILE, IgnoreFilter, build_filter


logger = logging.getLogger(__name__)


class WalkStatus(Enum):
    """Outcome of a (partial) walk."""
    CONTINUE = "continue"
    STOP = "stop"


def fuzzy_test(query: str, candidate: str) -> bool:
    """
    Check whether the characters of ``query`` appear in order within ``candidate``.

    The comparison ignores case; the characters need not be contiguous.
    """
    remaining = iter(candidate.lower())
    return all(char in remaining for char in query.lower())


def substring_test(query: str, candidate: str) -> bool:
    """Case-insensitive substring test."""
    return query.lower() in candidate.lower()


class FileSearchService:
    """
    Depth-first file search with gitignore support.

    Every call builds its own ignore filter and reads the live tree; nothing is
    cached between calls.
    """

    def __init__(self, defaults: Optional[SearchOptions] = None, ignore_file_name: str = DEFAULT_IGNORE_FILE):
        """
        Initialize the search service.

        Args:
            defaults: Options used when a call does not override them
            ignore_file_name: Name of the ignore-rule file to look for
        """
        self.defaults = defaults or SearchOptions()
        self.ignore_file_name = ignore_file_name

    @classmethod
    def from_config(cls, config: DiskTreeConfig) -> 'FileSearchService':
        """Create a service using the search section of a loaded configuration."""
        return cls(defaults=config.search.defaults, ignore_file_name=config.search.ignore_file_name)

    async def find(self, uri: str, query: str,
                   options: Union[SearchOptions, Dict[str, Any], None] = None) -> List[str]:
        """
        Find files below ``uri`` whose path matches ``query``.

        Args:
            uri: Resource locator of the base directory
            query: Text to match against each file's full path
            options: ``fuzzy_match``, ``limit`` and ``use_gitignore`` overrides

        Returns:
            Resource locators of matching files in walk order

        Raises:
            ResourceNotFoundError: If the base directory does not exist
            TypeConflictError: If the base is a file
        """
        opts = self.defaults.merge(options)
        base_path = file_uri.fs_path(uri)
        return await asyncio.to_thread(self._find_sync, base_path, query, opts)

    def _find_sync(self, base_path: Path, query: str, opts: SearchOptions) -> List[str]:
        base_uri = file_uri.create(base_path)
        if not base_path.exists():
            raise ResourceNotFoundError(f"Cannot search under a missing directory. URI: {base_uri}.", uri=base_uri)
        if not base_path.is_dir():
            raise TypeConflictError(f"Cannot search under a file. URI: {base_uri}.", uri=base_uri)

        result: List[str] = []
        if opts.limit == 0:
            return result

        matches = fuzzy_test if opts.fuzzy_match else substring_test
        is_denied = build_filter(base_path, opts.use_gitignore, self.ignore_file_name)
        stats = {
            'files_scanned': 0,
            'directories_traversed': 0,
            'entries_ignored': 0,
        }

        def accept(file_path: str) -> WalkStatus:
            stats['files_scanned'] += 1
            if matches(query, file_path):
                result.append(file_uri.create(file_path))
                if opts.limit is not None and len(result) >= opts.limit:
                    return WalkStatus.STOP
            return WalkStatus.CONTINUE

        status = self._walk(str(base_path), is_denied, accept, stats)
        logger.debug(
            f"Search for '{query}' under {base_path}: {len(result)} matches, "
            f"{stats['files_scanned']} files scanned, {stats['directories_traversed']} directories, "
            f"{stats['entries_ignored']} ignored, limit reached: {status is WalkStatus.STOP}"
        )
        return result

    def _walk(self, directory: str, is_denied: IgnoreFilter,
              accept: Callable[[str], WalkStatus], stats: Dict[str, int]) -> WalkStatus:
        """
        Visit the files below ``directory`` in pre-order.

        Returns:
            STOP as soon as ``accept`` asks to stop, CONTINUE otherwise
        """
        stats['directories_traversed'] += 1
        try:
            with os.scandir(directory) as entries:
                children = list(entries)
        except OSError as e:
            if classify_os_error(e) is not ErrorKind.TRANSIENT_ACCESS:
                raise
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            return WalkStatus.CONTINUE

        for entry in children:
            if is_denied(entry.name, entry.path):
                stats['entries_ignored'] += 1
                continue

            try:
                is_directory = entry.is_dir()
                is_link = entry.is_symlink()
            except OSError as e:
                logger.warning(f"Cannot read entry {entry.path}: {e}")
                continue

            if is_directory:
                # Linked directories are not followed to avoid cycles
                if is_link:
                    continue
                if self._walk(entry.path, is_denied, accept, stats) is WalkStatus.STOP:
                    return WalkStatus.STOP
            elif accept(entry.path) is WalkStatus.STOP:
                return WalkStatus.STOP

        return WalkStatus.CONTINUE
