"""
Stat tree reader for DiskTree.

Reads a snapshot of a filesystem entry, optionally including its children to
a requested depth. Absence and transient permission races are reported as
``None`` instead of raising, so callers can treat "not found" as an ordinary
outcome.
"""

import os
import stat
from pathlib import Path
from typing import List, Optional, Union

from .. import uri as file_uri
from ..errors import ErrorKind, classify_os_error
from ..models.file_stat import DirectoryEntry, FileEntry, StatNode


class StatReader:
    """Builds FileEntry/DirectoryEntry snapshots from the live tree."""

    def stat(self, path: Union[str, Path], depth: int = 0) -> Optional[StatNode]:
        """
        Read the entry at ``path``.

        Args:
            path: Native path of the entry
            depth: How many levels of children to resolve for directories

        Returns:
            A stat node, or None if the entry is absent or transiently inaccessible

        Raises:
            OSError: For any failure that is not an absence or permission race
        """
        path = Path(path)
        try:
            stat_result = os.stat(path)
            if stat.S_ISDIR(stat_result.st_mode):
                return self._create_directory_stat(path, stat_result, depth)
            return self._create_file_stat(path, stat_result)
        except OSError as e:
            if classify_os_error(e) is ErrorKind.TRANSIENT_ACCESS:
                return None
            raise

    def stat_uri(self, uri: str, depth: int = 0) -> Optional[StatNode]:
        """Read the entry named by a resource locator."""
        return self.stat(file_uri.fs_path(uri), depth)

    def _create_file_stat(self, path: Path, stat_result: os.stat_result) -> FileEntry:
        return FileEntry(
            uri=file_uri.create(path),
            last_modification=_mtime_millis(stat_result),
            size=stat_result.st_size,
        )

    def _create_directory_stat(self, path: Path, stat_result: os.stat_result, depth: int) -> DirectoryEntry:
        children = self._get_children(path, depth) if depth > 0 else []
        return DirectoryEntry(
            uri=file_uri.create(path),
            last_modification=_mtime_millis(stat_result),
            children=children,
        )

    def _get_children(self, path: Path, depth: int) -> List[StatNode]:
        children = []
        for name in os.listdir(path):
            # Entries removed between listing and stat are skipped
            child = self.stat(path / name, depth - 1)
            if child is not None:
                children.append(child)
        return children


def _mtime_millis(stat_result: os.stat_result) -> int:
    return stat_result.st_mtime_ns // 1_000_000
