"""
Filesystem service for DiskTree.

This module exposes create/read/write/move/copy/delete operations over the
local disk. Every operation re-reads the live tree; there is no locking
between calls, so writes are guarded by an optimistic check against the
caller's last-known snapshot instead.
"""

import asyncio
import errno
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional
import logging

import send2trash

from .. import uri as file_uri
from ..errors import (
    DiskTreeError,
    ResourceExistsError,
    ResourceNotFoundError,
    StaleStateError,
    TypeConflictError,
)
from ..models.config import DiskTreeConfig
from ..models.file_stat import DirectoryEntry, FileEntry, StatNode
from ..models.options import FileSystemOptions, OptionsArg, coerce_call_options
from .stat_reader import StatReader


logger = logging.getLogger(__name__)


@dataclass
class FileContent:
    """
    Result of reading a file.

    Attributes:
        stat: Snapshot of the file taken before reading
        content: Decoded text content
    """
    stat: FileEntry
    content: str


def _label(node: StatNode) -> str:
    return "directory" if node.is_directory else "file"


class FileSystemService:
    """
    Asynchronous filesystem operations over resource locators.

    Blocking disk work runs in a worker thread; each call performs its own
    pre- and post-condition checks through the stat reader.
    """

    def __init__(self, options: Optional[FileSystemOptions] = None, reader: Optional[StatReader] = None):
        """
        Initialize the filesystem service.

        Args:
            options: Process-wide defaults, immutable for the service lifetime
            reader: Stat reader used for all snapshots
        """
        self.options = options or FileSystemOptions()
        self.reader = reader or StatReader()

    @classmethod
    def from_config(cls, config: DiskTreeConfig) -> 'FileSystemService':
        """Create a service using the filesystem section of a loaded configuration."""
        return cls(options=config.filesystem)

    async def stat(self, uri: str) -> StatNode:
        """
        Get a snapshot of a resource including its immediate children.

        Raises:
            ResourceNotFoundError: If the resource does not exist
        """
        stat = await asyncio.to_thread(self.reader.stat_uri, uri, 1)
        if stat is None:
            raise ResourceNotFoundError(f"Cannot find file under the given URI. URI: {uri}.", uri=uri)
        return stat

    async def exists(self, uri: str) -> bool:
        """Check whether a resource exists. Never raises for I/O problems."""
        try:
            path = file_uri.fs_path(uri)
        except ValueError:
            return False
        return await asyncio.to_thread(os.path.exists, path)

    async def read_content(self, uri: str, options: OptionsArg = None) -> FileContent:
        """
        Read and decode the content of a file.

        Args:
            uri: Resource locator of the file
            options: Per-call overrides (``encoding``)

        Returns:
            FileContent with the pre-read snapshot and the decoded text

        Raises:
            ResourceNotFoundError: If the file does not exist
            TypeConflictError: If the resource is a directory
        """
        encoding = self.options.resolve(options).encoding

        def _do_read() -> FileContent:
            stat = self.reader.stat_uri(uri, 0)
            if stat is None:
                raise ResourceNotFoundError(f"Cannot find file under the given URI. URI: {uri}.", uri=uri)
            if stat.is_directory:
                raise TypeConflictError(f"Cannot resolve the content of a directory. URI: {uri}.", uri=uri)
            with open(file_uri.fs_path(uri), 'r', encoding=encoding, newline='') as f:
                content = f.read()
            return FileContent(stat=stat, content=content)

        return await asyncio.to_thread(_do_read)

    async def write_content(self, file: FileEntry, content: str, options: OptionsArg = None) -> StatNode:
        """
        Replace the content of a file if it still matches the caller's snapshot.

        Args:
            file: The snapshot the caller last observed
            content: New text content
            options: Per-call overrides (``encoding``)

        Returns:
            Fresh snapshot of the written file

        Raises:
            ResourceNotFoundError: If the file does not exist
            TypeConflictError: If the resource is now a directory
            StaleStateError: If the modification time or size changed on disk
        """
        encoding = self.options.resolve(options).encoding
        uri = file.uri

        def _do_write() -> StatNode:
            stat = self.reader.stat_uri(uri, 0)
            if stat is None:
                raise ResourceNotFoundError(f"Cannot find file under the given URI. URI: {uri}.", uri=uri)
            if stat.is_directory:
                raise TypeConflictError(f"Cannot set the content of a directory. URI: {uri}.", uri=uri)
            if stat.last_modification != file.last_modification:
                raise StaleStateError(uri, 'timestamp', file.last_modification, stat.last_modification)
            if stat.size != file.size:
                raise StaleStateError(uri, 'size', file.size, stat.size)
            with open(file_uri.fs_path(uri), 'w', encoding=encoding, newline='') as f:
                f.write(content)
            return self._require_stat(uri)

        return await asyncio.to_thread(_do_write)

    async def move(self, source_uri: str, target_uri: str, options: OptionsArg = None) -> StatNode:
        """
        Move a file or directory.

        Two empty-directory cases avoid a plain rename when ``overwrite`` is set
        and both sides are directories: an empty source onto an empty target
        touches the target and removes the source, and a non-empty source onto
        an empty target is copied and then deleted, through the trash unless
        ``move_to_trash`` is off. Everything else is renamed. A directory is
        never moved into its own subtree or onto one of its ancestors.

        Raises:
            DiskTreeError: If source and target contain one another
            ResourceNotFoundError: If the source does not exist
            ResourceExistsError: If the target exists and overwrite is off
            TypeConflictError: If source and target are of different types
        """
        resolved = self.options.resolve(options)
        return await asyncio.to_thread(
            self._move_sync, source_uri, target_uri, resolved.overwrite, resolved.move_to_trash
        )

    def _move_sync(self, source_uri: str, target_uri: str, overwrite: bool, move_to_trash: bool) -> StatNode:
        source_stat = self.reader.stat_uri(source_uri, 1)
        if source_stat is None:
            raise ResourceNotFoundError(f"File does not exist under {source_uri}.", uri=source_uri)

        target_stat = self.reader.stat_uri(target_uri, 1)
        if target_stat is not None and not overwrite:
            raise ResourceExistsError(
                f"File already exist under the '{target_uri}' target location. "
                f"Did you set the 'overwrite' flag to true?",
                uri=target_uri,
            )
        if target_stat is not None and source_stat.is_directory != target_stat.is_directory:
            raise TypeConflictError(
                f"Cannot move a {_label(source_stat)} to an existing {_label(target_stat)} location. "
                f"Source URI: {source_uri}. Target URI: {target_uri}.",
                uri=target_uri,
            )

        source_path = file_uri.fs_path(source_uri)
        target_path = file_uri.fs_path(target_uri)

        if target_stat is not None and _same_file(source_path, target_path):
            return self._require_stat(target_uri)

        if source_stat.is_directory and _is_within(target_path, source_path):
            raise DiskTreeError(
                f"Cannot move '{source_uri}' to a subdirectory of itself, '{target_uri}'.",
                uri=target_uri,
            )
        if target_stat is not None and target_stat.is_directory and _is_within(source_path, target_path):
            raise DiskTreeError(
                f"Cannot move '{source_uri}' onto its own parent directory '{target_uri}'.",
                uri=target_uri,
            )

        both_directories = (
            overwrite
            and target_stat is not None
            and target_stat.is_directory
            and source_stat.is_directory
        )
        if both_directories and not self._may_have_children(target_path):
            if not self._may_have_children(source_path):
                logger.debug(f"Empty directory move: touching {target_path} and removing {source_path}")
                os.utime(target_path, None)
                os.rmdir(source_path)
            else:
                logger.debug(f"Moving {source_path} onto empty {target_path} by copy and remove")
                shutil.copytree(source_path, target_path, symlinks=True, dirs_exist_ok=True)
                if move_to_trash:
                    send2trash.send2trash(str(source_path))
                else:
                    shutil.rmtree(source_path)
            return self._require_stat(target_uri)

        self._rename(source_path, target_path, overwrite)
        return self._require_stat(target_uri)

    def _rename(self, source: Path, target: Path, overwrite: bool) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        if not (overwrite and target.is_dir() and not target.is_symlink()):
            _replace(source, target)
            return

        # Directory renames cannot replace a non-empty directory; park the old
        # target beside it until the new one is in place
        holder = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
        displaced = holder / target.name
        os.rename(target, displaced)

        def restore() -> None:
            if os.path.lexists(target):
                _remove_path(target)
            os.rename(displaced, target)
            holder.rmdir()

        try:
            os.replace(source, target)
        except OSError as e:
            if e.errno != errno.EXDEV:
                restore()
                raise
            logger.debug(f"Rename of {source} crosses devices, copying to {target} instead")
            try:
                _copy_path(source, target)
            except OSError:
                restore()
                raise
            shutil.rmtree(holder)
            _remove_path(source)
            return
        shutil.rmtree(holder)

    async def copy(self, source_uri: str, target_uri: str, options: OptionsArg = None) -> StatNode:
        """
        Copy a file or a directory tree.

        Copying a directory onto an existing directory with ``overwrite`` merges
        the trees, replacing files that exist on both sides.

        Raises:
            ResourceNotFoundError: If the source does not exist
            ResourceExistsError: If the target exists and overwrite is off
            TypeConflictError: If source and target are of different types
        """
        overwrite = self.options.resolve(options).overwrite

        def _do_copy() -> StatNode:
            source_stat = self.reader.stat_uri(source_uri, 0)
            if source_stat is None:
                raise ResourceNotFoundError(f"File does not exist under {source_uri}.", uri=source_uri)
            target_stat = self.reader.stat_uri(target_uri, 0)
            if target_stat is not None and not overwrite:
                raise ResourceExistsError(
                    f"File already exist under the '{target_uri}' target location. "
                    f"Did you set the 'overwrite' flag to true?",
                    uri=target_uri,
                )
            if target_stat is not None and source_stat.is_directory != target_stat.is_directory:
                raise TypeConflictError(
                    f"Cannot copy a {_label(source_stat)} to an existing {_label(target_stat)} location. "
                    f"Source URI: {source_uri}. Target URI: {target_uri}.",
                    uri=target_uri,
                )

            source_path = file_uri.fs_path(source_uri)
            target_path = file_uri.fs_path(target_uri)
            if source_stat.is_directory and _is_within(target_path, source_path):
                raise DiskTreeError(
                    f"Cannot copy '{source_uri}' to a subdirectory of itself, '{target_uri}'.",
                    uri=target_uri,
                )
            if target_stat is not None and _same_file(source_path, target_path):
                return self._require_stat(target_uri)

            target_path.parent.mkdir(parents=True, exist_ok=True)
            _copy_path(source_path, target_path)
            return self._require_stat(target_uri)

        return await asyncio.to_thread(_do_copy)

    async def create_file(self, uri: str, options: OptionsArg = None) -> StatNode:
        """
        Create a new file, creating missing parent directories first.

        Args:
            uri: Resource locator of the new file
            options: Per-call overrides (``content``, ``encoding``)

        Raises:
            ResourceExistsError: If something already exists at ``uri``
        """
        overrides = coerce_call_options(options)
        encoding = self.options.resolve(overrides).encoding
        content = overrides.content or ""

        def _do_create() -> StatNode:
            if self.reader.stat_uri(uri, 0) is not None:
                raise ResourceExistsError(
                    f"Error occurred while creating the file. File already exists at {uri}.", uri=uri
                )
            path = file_uri.fs_path(uri)
            if self.reader.stat(path.parent, 0) is None:
                path.parent.mkdir(parents=True, exist_ok=True)
            try:
                with open(path, 'x', encoding=encoding, newline='') as f:
                    f.write(content)
            except FileExistsError as e:
                raise ResourceExistsError(
                    f"Error occurred while creating the file. File already exists at {uri}.", uri=uri
                ) from e
            return self._require_stat(uri)

        return await asyncio.to_thread(_do_create)

    async def create_folder(self, uri: str) -> StatNode:
        """
        Create a directory together with any missing intermediate directories.

        Raises:
            ResourceExistsError: If something already exists at ``uri``
        """

        def _do_create() -> StatNode:
            if self.reader.stat_uri(uri, 0) is not None:
                raise ResourceExistsError(
                    f"Error occurred while creating the directory. File already exists at {uri}.", uri=uri
                )
            try:
                os.makedirs(file_uri.fs_path(uri))
            except FileExistsError as e:
                raise ResourceExistsError(
                    f"Error occurred while creating the directory. File already exists at {uri}.", uri=uri
                ) from e
            return self._require_stat(uri)

        return await asyncio.to_thread(_do_create)

    async def touch(self, uri: str) -> StatNode:
        """Create an empty file, or update the modification time of an existing resource."""
        stat = await asyncio.to_thread(self.reader.stat_uri, uri, 0)
        if stat is None:
            return await self.create_file(uri)

        def _do_touch() -> StatNode:
            os.utime(file_uri.fs_path(uri), None)
            return self._require_stat(uri)

        return await asyncio.to_thread(_do_touch)

    async def delete(self, uri: str, options: OptionsArg = None) -> None:
        """
        Delete a file or directory tree.

        Args:
            uri: Resource locator to delete
            options: Per-call overrides (``move_to_trash``)

        Raises:
            ResourceNotFoundError: If the resource does not exist
        """
        move_to_trash = self.options.resolve(options).move_to_trash

        def _do_delete() -> None:
            if self.reader.stat_uri(uri, 0) is None:
                raise ResourceNotFoundError(f"File does not exist under {uri}.", uri=uri)
            path = file_uri.fs_path(uri)
            if move_to_trash:
                send2trash.send2trash(str(path))
            else:
                _remove_path(path)

        await asyncio.to_thread(_do_delete)

    async def get_encoding(self, uri: str) -> str:
        """
        Get the encoding used for a file.

        Raises:
            ResourceNotFoundError: If the file does not exist
            TypeConflictError: If the resource is a directory
        """
        stat = await asyncio.to_thread(self.reader.stat_uri, uri, 0)
        if stat is None:
            raise ResourceNotFoundError(f"File does not exist under {uri}.", uri=uri)
        if stat.is_directory:
            raise TypeConflictError(f"Cannot get the encoding of a directory. URI: {uri}.", uri=uri)
        return self.options.encoding

    async def get_roots(self) -> List[StatNode]:
        """Get the filesystem root of the working directory, or an empty list if it cannot be read."""
        root_path = Path(Path.cwd().anchor)
        try:
            root = await asyncio.to_thread(self.reader.stat, root_path, 1)
        except OSError as e:
            logger.error(f"Cannot locate the file system root under {file_uri.create(root_path)}: {e}")
            return []
        if root is None:
            logger.error(f"Cannot locate the file system root under {file_uri.create(root_path)}.")
            return []
        return [root]

    async def get_current_user_home(self) -> StatNode:
        """Get a snapshot of the current user's home directory."""
        return await self.stat(file_uri.create(Path.home()))

    def _require_stat(self, uri: str) -> StatNode:
        stat = self.reader.stat_uri(uri, 1)
        if stat is None:
            raise ResourceNotFoundError(f"Cannot find file under the given URI. URI: {uri}.", uri=uri)
        return stat

    def _may_have_children(self, path: Path) -> bool:
        """
        Return True unless ``path`` is provably an empty directory or a file.

        Any read problem counts as "may have children". Symbolic links are
        never treated as empty so the empty-directory shortcuts only apply to
        real directories.
        """
        if path.is_symlink():
            return True
        try:
            root = self.reader.stat(path, 0)
        except OSError:
            return True
        if root is None:
            return True
        if not root.is_directory:
            return False

        try:
            stat = self.reader.stat(path, 1)
        except OSError:
            return True
        if not isinstance(stat, DirectoryEntry):
            return True
        if len(stat.children) > 0:
            return True
        # Children that could not be stat'ed are omitted from the snapshot
        try:
            return len(os.listdir(path)) > 0
        except OSError:
            return True


def _replace(source: Path, target: Path) -> None:
    try:
        os.replace(source, target)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        logger.debug(f"Rename of {source} crosses devices, copying to {target} instead")
        _copy_path(source, target)
        _remove_path(source)


def _copy_path(source: Path, target: Path) -> None:
    if source.is_dir() and not source.is_symlink():
        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True)
    else:
        shutil.copy2(source, target, follow_symlinks=False)


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _same_file(first: Path, second: Path) -> bool:
    try:
        return os.path.samefile(first, second)
    except OSError:
        return False


def _is_within(path: Path, directory: Path) -> bool:
    try:
        path.resolve().relative_to(directory.resolve())
    except ValueError:
        return False
    return True
