"""
Option models for DiskTree.

FileSystemOptions is constructed once at service startup and never mutated.
Individual calls may pass sparse CallOptions whose unset fields fall back to
the process-wide values.
"""

import codecs
from typing import Dict, Optional, Any, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _validate_codec(v: Optional[str]) -> Optional[str]:
    """Ensure a codec name is known to Python."""
    if v is None:
        return v
    try:
        codecs.lookup(v)
    except LookupError:
        raise ValueError(f"Unknown text encoding: {v}")
    return v


class CallOptions(BaseModel):
    """
    Per-call overrides for filesystem operations.

    Every field is optional; ``None`` means "use the process-wide default".

    Attributes:
        encoding: Text codec for reading or writing content
        overwrite: Whether an existing target may be clobbered
        recursive: Reserved for directory-wide operations
        move_to_trash: Whether deletion goes through the trash
        content: Initial content for created files
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    encoding: Optional[str] = Field(None, description="Text codec override")
    overwrite: Optional[bool] = Field(None, description="Overwrite override")
    recursive: Optional[bool] = Field(None, description="Recursive override")
    move_to_trash: Optional[bool] = Field(None, description="Trash override")
    content: Optional[str] = Field(None, description="Initial content for created files")

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v):
        """Validate the codec name."""
        return _validate_codec(v)


OptionsArg = Union[CallOptions, Dict[str, Any], None]


def coerce_call_options(options: OptionsArg) -> CallOptions:
    """Turn a CallOptions, dict or None into a CallOptions instance."""
    if options is None:
        return CallOptions()
    if isinstance(options, CallOptions):
        return options
    return CallOptions.model_validate(options)


class FileSystemOptions(BaseModel):
    """
    Process-wide filesystem defaults.

    Attributes:
        encoding: Default text codec
        overwrite: Whether destructive operations clobber existing targets by default
        recursive: Reserved for directory-wide operations
        move_to_trash: Whether deletion goes through the trash by default
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    encoding: str = Field("utf8", min_length=1, description="Default text codec")
    overwrite: bool = Field(False, description="Clobber existing targets by default")
    recursive: bool = Field(True, description="Reserved for directory-wide operations")
    move_to_trash: bool = Field(True, description="Route deletion through the trash by default")

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v):
        """Validate the codec name."""
        return _validate_codec(v)

    def resolve(self, options: OptionsArg = None) -> 'FileSystemOptions':
        """
        Merge per-call overrides over these defaults.

        Args:
            options: Sparse overrides for a single call

        Returns:
            The effective options for the call
        """
        overrides = coerce_call_options(options)
        return FileSystemOptions(
            encoding=overrides.encoding if overrides.encoding is not None else self.encoding,
            overwrite=overrides.overwrite if overrides.overwrite is not None else self.overwrite,
            recursive=overrides.recursive if overrides.recursive is not None else self.recursive,
            move_to_trash=overrides.move_to_trash if overrides.move_to_trash is not None else self.move_to_trash,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()


class SearchOptions(BaseModel):
    """
    Options for a single recursive search.

    Attributes:
        fuzzy_match: Use subsequence matching instead of substring matching
        limit: Maximum number of matches to collect (None means unbounded)
        use_gitignore: Apply the nearest ignore-rule file
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    fuzzy_match: bool = Field(True, description="Use subsequence matching")
    limit: Optional[int] = Field(None, ge=0, description="Maximum number of matches")
    use_gitignore: bool = Field(True, description="Apply the nearest ignore-rule file")

    def merge(self, options: Union['SearchOptions', Dict[str, Any], None]) -> 'SearchOptions':
        """Return these options with the explicitly set fields of ``options`` applied."""
        if options is None:
            return self
        if isinstance(options, SearchOptions):
            overrides = options.model_dump(exclude_unset=True)
        else:
            overrides = SearchOptions.model_validate(options).model_dump(exclude_unset=True)
        return self.model_copy(update=overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return self.model_dump()
