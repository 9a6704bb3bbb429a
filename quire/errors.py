"""Exception types raised while reading and building the site."""

from __future__ import annotations

from pathlib import Path


class QuireError(Exception):
    """Base class for all errors raised by Quire."""


class ConfigError(QuireError):
    """The site configuration file could not be loaded."""


class FrontMatterError(QuireError):
    """A front matter block is unterminated, not YAML, or not a mapping."""


class PostFilenameError(QuireError):
    """A post filename does not follow the YYYY-MM-DD-slug.ext convention."""


class LayoutError(QuireError):
    """A layout chain could not be resolved (for example, it loops)."""


class BuildError(QuireError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")
