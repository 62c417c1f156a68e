"""
Resource locators for DiskTree.

Resources are named by ``file://`` URIs which map losslessly onto native
absolute paths.
"""

import os
from pathlib import Path
from typing import Union
from urllib.parse import urlparse
from urllib.request import url2pathname


FILE_SCHEME = "file"


def create(path: Union[str, Path]) -> str:
    """Build the ``file://`` URI string for a native path."""
    return Path(os.path.abspath(path)).as_uri()


def fs_path(uri: str) -> Path:
    """
    Convert a ``file://`` URI string into a native absolute path.

    Args:
        uri: Resource locator string

    Returns:
        Native absolute path

    Raises:
        ValueError: If the URI does not use the file scheme
    """
    parsed = urlparse(uri)
    if parsed.scheme != FILE_SCHEME:
        raise ValueError(f"Unsupported resource locator scheme: {uri}")

    path = url2pathname(parsed.path)
    if parsed.netloc and parsed.netloc != "localhost":
        # UNC share on Windows
        path = f"//{parsed.netloc}{path}"
    return Path(path)


def parent(uri: str) -> str:
    """Return the URI of the directory containing ``uri``."""
    return create(fs_path(uri).parent)


def join(uri: str, name: str) -> str:
    """Return the URI of the child ``name`` below ``uri``."""
    return create(fs_path(uri) / name)
