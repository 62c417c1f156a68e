"""
Ignore filters for DiskTree searches.

A search is governed by the nearest ``.gitignore`` found by walking upward
from the search base. Its patterns are compiled into an IgnoreRules predicate
and combined with a built-in exclusion of version-control metadata
directories.
"""

import fnmatch
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union
import logging


logger = logging.getLogger(__name__)

VCS_DIRECTORY = '.git'
DEFAULT_IGNORE_FILE = '.gitignore'

# (simple_name, full_path) -> True when the entry must be skipped
IgnoreFilter = Callable[[str, str], bool]

_FNMATCH_ANCHOR = re.compile(r'\\[Zz]$')


@dataclass
class IgnoreFile:
    """
    An ignore-rule file discovered on disk.

    Attributes:
        directory: Directory containing the file; patterns are relative to it
        path: Path of the file itself
        contents: Raw text of the file
    """
    directory: Path
    path: Path
    contents: str


@dataclass
class IgnorePattern:
    """A single compiled gitignore pattern."""
    original: str
    regex: re.Pattern
    is_negation: bool
    directory_only: bool = False


def _translate_glob(part: str) -> str:
    """Translate a glob fragment without ``**`` so that wildcards stay within one path segment."""
    regex = fnmatch.translate(part)
    regex = _FNMATCH_ANCHOR.sub('', regex)
    return regex.replace('.*', '[^/]*')


def gitignore_to_regex(pattern: str) -> Optional[str]:
    """
    Convert a gitignore-style pattern to a regex over slash-separated relative paths.

    The ``inside`` group is set when the path lies below the matched entry
    rather than being the entry itself.

    Supports:
    - Basic wildcards (* and ?)
    - Directory wildcards (**)
    - Directory-only patterns (trailing /)
    - Anchored patterns (leading or inner /)
    - Character classes [abc] and [!abc]

    Args:
        pattern: Gitignore-style pattern without the leading ``!``

    Returns:
        Regex string, or None if the pattern matches nothing
    """
    if not pattern:
        return None

    # Callers decide whether a directory-only pattern applies to the path itself
    if pattern.endswith('/'):
        pattern = pattern.rstrip('/')
    if not pattern:
        return None

    # A slash anywhere but the end anchors the pattern to the ignore file's directory
    is_anchored = '/' in pattern
    pattern = pattern.lstrip('/')
    if not pattern:
        return None

    if '**' in pattern:
        parts = pattern.split('**')
        regex_parts = []

        for i, part in enumerate(parts):
            if i > 0:
                prev_part = parts[i - 1]
                if prev_part == '' and part.startswith('/'):
                    # Leading **/ - zero or more directories
                    regex_parts.append(r'(?:[^/]+/)*')
                    part = part[1:]
                elif part == '':
                    # Trailing /** - everything under the directory
                    regex_parts.append(r'.*')
                elif part.startswith('/') and prev_part.endswith('/'):
                    # Inner /**/ - zero or more directories
                    regex_parts.append(r'(?:[^/]+/)*')
                    part = part[1:]
                else:
                    # ** without surrounding slashes
                    regex_parts.append(r'.*')

            if part:
                regex_parts.append(_translate_glob(part))

        body = ''.join(regex_parts)
    else:
        body = _translate_glob(pattern)

    if is_anchored:
        return f'^{body}(?P<inside>/.*)?$'
    return f'(?:^|/){body}(?P<inside>/.*)?$'


class IgnoreRules:
    """
    Compiled gitignore rules.

    Patterns are evaluated in order and the last matching pattern wins, so a
    later ``!pattern`` can re-include a path excluded earlier.
    """

    def __init__(self, patterns: List[IgnorePattern]):
        self.patterns = patterns
        self.has_directory_patterns = any(pattern.directory_only for pattern in patterns)

    @classmethod
    def compile(cls, contents: str) -> 'IgnoreRules':
        """
        Compile the text of an ignore-rule file.

        Blank lines and ``#`` comments are skipped; ``\\#`` and ``\\!`` escape
        a literal leading character.
        """
        patterns = []
        for line in contents.splitlines():
            line = line.rstrip()
            if not line or line.startswith('#'):
                continue

            is_negation = line.startswith('!')
            if is_negation:
                line = line[1:]
            elif line.startswith('\\#') or line.startswith('\\!'):
                line = line[1:]

            regex = gitignore_to_regex(line)
            if regex is None:
                continue
            try:
                patterns.append(IgnorePattern(line, re.compile(regex), is_negation, line.endswith('/')))
            except re.error as e:
                logger.warning(f"Invalid ignore pattern '{line}': {e}")

        return cls(patterns)

    def denies(self, relative_path: str, is_directory: bool = False) -> bool:
        """
        Check whether a path relative to the ignore file's directory is excluded.

        Patterns with a trailing slash only match directories, and everything
        below them.

        Args:
            relative_path: Slash-separated path, e.g. ``src/build/out.o``
            is_directory: Whether the path itself is a directory

        Returns:
            True if the path is ignored
        """
        normalized = relative_path.replace(os.sep, '/').strip('/')
        ignored = False
        for pattern in self.patterns:
            match = pattern.regex.search(normalized)
            if match is None:
                continue
            if pattern.directory_only and match.group('inside') is None and not is_directory:
                continue
            ignored = not pattern.is_negation
        return ignored

    def __len__(self) -> int:
        return len(self.patterns)


def is_vcs_metadata(simple_name: str, full_path: Union[str, Path] = '') -> bool:
    """Check whether an entry is, or lies inside, a version-control metadata directory."""
    if simple_name == VCS_DIRECTORY or simple_name.startswith(VCS_DIRECTORY + '/'):
        return True
    return VCS_DIRECTORY in Path(full_path).parts


def find_ignore_file(base_path: Union[str, Path], file_name: str = DEFAULT_IGNORE_FILE) -> Optional[IgnoreFile]:
    """
    Find the nearest ignore-rule file at or above ``base_path``.

    Ascends one directory at a time and stops at the first readable file, at
    the filesystem root, or at the first parent that cannot be read.

    Args:
        base_path: Directory to start from
        file_name: Name of the ignore-rule file

    Returns:
        IgnoreFile, or None if no ancestor has one
    """
    directory = Path(os.path.abspath(base_path))
    while True:
        candidate = directory / file_name
        try:
            if candidate.is_file():
                contents = candidate.read_text(encoding='utf-8')
                logger.info(f"Found gitignore below {candidate}")
                return IgnoreFile(directory=directory, path=candidate, contents=contents)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read ignore file {candidate}: {e}")
            return None

        parent = directory.parent
        if parent == directory:
            return None
        if not os.access(parent, os.R_OK | os.X_OK):
            return None
        directory = parent


def build_filter(base_path: Union[str, Path], use_gitignore: bool = True,
                 file_name: str = DEFAULT_IGNORE_FILE) -> IgnoreFilter:
    """
    Build the exclusion predicate for a search rooted at ``base_path``.

    Args:
        base_path: Search base directory
        use_gitignore: Whether to apply the nearest ignore-rule file
        file_name: Name of the ignore-rule file

    Returns:
        Predicate taking (simple_name, full_path) and returning True to exclude
    """
    if use_gitignore:
        ignore_file = find_ignore_file(base_path, file_name)
        if ignore_file is not None:
            rules = IgnoreRules.compile(ignore_file.contents)
            rules_root = ignore_file.directory

            def _filter(simple_name: str, full_path: str) -> bool:
                if is_vcs_metadata(simple_name, full_path):
                    return True
                try:
                    relative = Path(full_path).relative_to(rules_root).as_posix()
                except ValueError:
                    relative = simple_name
                is_directory = rules.has_directory_patterns and os.path.isdir(full_path)
                return rules.denies(relative, is_directory)

            return _filter

    return is_vcs_metadata
