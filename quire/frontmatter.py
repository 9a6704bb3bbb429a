"""Front matter parsing for Quire.

A content file opts into processing by starting with a YAML block bounded
by ``---`` lines::

    ---
    layout: post
    title: Hello
    tags: [python, notes]
    ---
    Body text.

The closing delimiter may also be ``...``. An empty block (two consecutive
``---`` lines) is valid and yields an empty mapping. Files that do not begin
with ``---`` have no front matter and are treated as static files by the
reader.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from .errors import FrontMatterError

FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
_OPENING_RE = re.compile(r"\A---[ \t]*\r?\n")


def has_front_matter(text: str) -> bool:
    """Return True if text opens with a front matter delimiter line."""
    return bool(_OPENING_RE.match(text))


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split raw file content into front matter and body.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front matter mapping, remaining body).

    Raises:
        FrontMatterError: If the block is unterminated, is not valid YAML,
            or does not describe a mapping.
    """
    if not has_front_matter(text):
        return {}, text
    match = FRONT_MATTER_RE.match(text)
    if not match:
        raise FrontMatterError("front matter block is not terminated by '---'")
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontMatterError(f"invalid YAML in front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]


def body_line_offset(text: str) -> int:
    """Number of lines taken by the front matter block, for error reporting."""
    match = FRONT_MATTER_RE.match(text)
    if not match:
        return 0
    return text[: match.end()].count("\n")
