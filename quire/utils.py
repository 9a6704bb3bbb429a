"""Utility functions for Quire.

String processing, post filename parsing, permalink expansion and path
handling used throughout the package.

Key functions:
    slugify: Convert titles and filenames to URL slugs.
    titleize: Convert filenames to human-readable titles.
    parse_post_filename: Split a YYYY-MM-DD-slug.ext post filename.
    render_permalink: Expand a permalink template such as /:year/:title.html.
    url_to_output_path: Map a URL to a file path inside the destination.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable, Mapping
from datetime import datetime
from pathlib import Path

from .errors import PostFilenameError

POST_FILENAME_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})-(.+)\.([^.]+)$")
_PLACEHOLDER_RE = re.compile(r":([a-z_]+)")

PERMALINK_STYLES = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}


def slugify(name: str) -> str:
    """Convert a string to a lowercase, hyphen-separated slug.

    Args:
        name: Title, filename stem or label.

    Returns:
        URL-friendly slug, or an empty string if nothing survives.

    Examples:
        >>> slugify("Context Managers, Revisited!")
        'context-managers-revisited'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    return cleaned.strip("-").lower()


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2014-02-10-hello-world.md")
        'Hello World'
    """
    base = Path(filename).stem
    match = POST_FILENAME_RE.match(Path(filename).name)
    if match:
        base = match.group(4)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def parse_post_filename(name: str) -> tuple[datetime, str, str]:
    """Split a post filename into its date, slug and extension.

    Args:
        name: Filename such as ``2014-02-10-hello-world.md``.

    Returns:
        Tuple of (date at midnight, slug, extension without the dot).

    Raises:
        PostFilenameError: If the name does not match the convention or the
            date does not exist on the calendar.
    """
    match = POST_FILENAME_RE.match(name)
    if not match:
        raise PostFilenameError(
            f"{name!r} does not match the YYYY-MM-DD-slug.ext post naming convention"
        )
    year, month, day, slug, ext = match.groups()
    try:
        date = datetime(int(year), int(month), int(day))
    except ValueError as exc:
        raise PostFilenameError(f"{name!r} has an invalid date: {exc}") from exc
    return date, slug, ext


def coerce_list(value) -> list[str]:
    """Normalize a front matter label field to a list of strings.

    Strings are split on whitespace the way Jekyll treats ``categories``
    and ``tags`` given as a single string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Iterable):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def render_permalink(template: str, values: Mapping[str, str]) -> str:
    """Expand a permalink template.

    Unknown placeholders are left as-is. Empty segments collapse, so a post
    without categories renders ``/:categories/:title.html`` as
    ``/title.html``.

    Args:
        template: Permalink template or a named style (``date``, ``pretty``,
            ``ordinal``, ``none``).
        values: Placeholder values keyed by placeholder name.

    Returns:
        URL path starting with a slash.
    """
    pattern = PERMALINK_STYLES.get(template, template)

    def repl(match: re.Match) -> str:
        key = match.group(1)
        if key in values:
            return str(values[key])
        return match.group(0)

    url = _PLACEHOLDER_RE.sub(repl, pattern)
    url = re.sub(r"/{2,}", "/", url)
    if not url.startswith("/"):
        url = f"/{url}"
    return url


def url_to_output_path(url: str) -> Path:
    """Return the file path, relative to the destination, for a URL.

    Examples:
        >>> url_to_output_path("/")
        PosixPath('index.html')
        >>> url_to_output_path("/about/")
        PosixPath('about/index.html')
        >>> url_to_output_path("/2014/02/10/hello.html")
        PosixPath('2014/02/10/hello.html')
    """
    path = url.lstrip("/")
    if not path or path.endswith("/"):
        path = f"{path}index.html"
    return Path(path)


def is_markdown(path: Path, extensions: Iterable[str]) -> bool:
    """Check if a path has one of the configured markdown extensions.

    Args:
        path: Path to check.
        extensions: Extensions without leading dots.

    Returns:
        True if the suffix matches (case-insensitive).
    """
    suffix = path.suffix.lower().lstrip(".")
    return suffix in {ext.lower().lstrip(".") for ext in extensions}


def is_internal_path(rel: Path) -> bool:
    """Check if a relative path contains a component starting with _ or a dot.

    Internal paths hold layouts, includes, posts, drafts and build output.
    """
    return any(part.startswith(("_", ".")) for part in rel.parts)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
