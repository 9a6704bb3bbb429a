"""Content checks for the blog's source files.

These are the well-formedness rules the build relies on but does not
enforce strictly, collected into one pass so a broken post is caught before
the site is published:

- front matter parses into a mapping;
- posts have front matter and a title;
- post filenames follow the ``YYYY-MM-DD-slug.ext`` convention with a real
  calendar date;
- ``layout`` values (on documents and on layouts) name an existing layout;
- ``title``, ``pagetitle`` and ``category`` are strings, ``tags`` is a list
  of strings;
- ``{% include %}`` references point at files in ``_includes/``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import destination_dir, load_config, markdown_extensions
from .errors import FrontMatterError, PostFilenameError
from .frontmatter import has_front_matter, split_front_matter
from .liquid import strip_unrendered
from .utils import is_internal_path, is_markdown, parse_post_filename

ERROR = "error"
WARNING = "warning"

_INCLUDE_RE = re.compile(r"\{%-?\s*include\s+(\"[^\"]+\"|'[^']+'|[^\s%]+)")
_STRING_KEYS = ("title", "pagetitle", "category")
_TEXT_SUFFIXES = (".html", ".xml", ".md", ".markdown", ".txt", ".json", ".css", ".js")


@dataclass(frozen=True)
class LintIssue:
    """A problem found in a source file.

    Attributes:
        path: File the issue was found in.
        message: Human-readable description.
        severity: ``"error"`` or ``"warning"``.
    """

    path: Path
    message: str
    severity: str = ERROR

    def format(self, root: Path | None = None) -> str:
        shown = self.path
        if root is not None:
            try:
                shown = self.path.relative_to(root)
            except ValueError:
                pass
        return f"{shown}: {self.severity}: {self.message}"


class SiteLinter:
    """Runs the content checks over a source directory.

    Attributes:
        source: Source directory.
        config: Site configuration.
        issues: Issues found so far.
    """

    def __init__(self, source: Path, config: dict[str, Any] | None = None):
        self.source = source
        self.config = config if config is not None else load_config(source)
        self.markdown_exts = markdown_extensions(self.config)
        self.layout_names = self._layout_names()
        self.include_dir = source / "_includes"
        self.issues: list[LintIssue] = []

    def run(self) -> list[LintIssue]:
        """Check every layout, post, draft and page.

        Returns:
            Issues sorted by path.
        """
        self.issues = []
        self._check_layouts()
        for path in self._files("_includes"):
            self._check_includes(path, path.read_text(encoding="utf-8"))
        for path in self._files("_posts"):
            self._check_post(path, dated=True)
        for path in self._files("_drafts"):
            self._check_post(path, dated=False)
        for path in self._page_files():
            self._check_page(path)
        return sorted(self.issues, key=lambda i: (str(i.path), i.severity, i.message))

    def _report(self, path: Path, message: str, severity: str = ERROR) -> None:
        self.issues.append(LintIssue(path=path, message=message, severity=severity))

    def _layout_names(self) -> set[str]:
        layout_dir = self.source / "_layouts"
        if not layout_dir.is_dir():
            return set()
        return {p.stem for p in layout_dir.iterdir() if p.is_file()}

    def _files(self, folder: str) -> list[Path]:
        root = self.source / folder
        if not root.is_dir():
            return []
        return sorted(
            p for p in root.rglob("*") if p.is_file() and not p.name.startswith(".")
        )

    def _page_files(self) -> list[Path]:
        destination = destination_dir(self.source, self.config)
        pages = []
        for path in sorted(self.source.rglob("*")):
            if not path.is_file():
                continue
            rel = path.relative_to(self.source)
            if is_internal_path(rel) or path.is_relative_to(destination):
                continue
            if path.suffix.lower() not in _TEXT_SUFFIXES:
                continue
            pages.append(path)
        return pages

    def _read(self, path: Path) -> tuple[dict[str, Any] | None, str]:
        text = path.read_text(encoding="utf-8")
        if not has_front_matter(text):
            return None, text
        try:
            return split_front_matter(text)
        except FrontMatterError as exc:
            self._report(path, str(exc))
            return {}, text

    def _check_layouts(self) -> None:
        for path in self._files("_layouts"):
            frontmatter, body = self._read(path)
            if frontmatter:
                parent = frontmatter.get("layout")
                if parent not in (None, "", "none") and str(parent) not in self.layout_names:
                    self._report(path, f"parent layout '{parent}' does not exist")
            self._check_includes(path, body)

    def _check_post(self, path: Path, dated: bool) -> None:
        if dated:
            try:
                parse_post_filename(path.name)
            except PostFilenameError as exc:
                self._report(path, str(exc))
        frontmatter, body = self._read(path)
        if frontmatter is None:
            self._report(path, "post has no front matter block")
            return
        if "title" not in frontmatter:
            self._report(path, "post has no title", WARNING)
        self._check_document(path, frontmatter, body)

    def _check_page(self, path: Path) -> None:
        frontmatter, body = self._read(path)
        if frontmatter is None:
            return
        self._check_document(path, frontmatter, body)

    def _check_document(self, path: Path, frontmatter: dict[str, Any], body: str) -> None:
        if "layout" in frontmatter:
            layout = frontmatter["layout"]
            if layout not in (None, "", "none") and str(layout) not in self.layout_names:
                self._report(path, f"layout '{layout}' does not exist")
        elif is_markdown(path, self.markdown_exts):
            self._report(path, "no layout set; content will be written unwrapped", WARNING)

        for key in _STRING_KEYS:
            if key in frontmatter and not isinstance(frontmatter[key], str):
                self._report(
                    path,
                    f"'{key}' must be a string, got {type(frontmatter[key]).__name__}",
                )
        if "tags" in frontmatter:
            tags = frontmatter["tags"]
            valid = isinstance(tags, str) or (
                isinstance(tags, list) and all(isinstance(t, str) for t in tags)
            )
            if not valid:
                self._report(path, "'tags' must be a list of strings")
        self._check_includes(path, body)

    def _check_includes(self, path: Path, body: str) -> None:
        for match in _INCLUDE_RE.finditer(strip_unrendered(body)):
            name = match.group(1).strip("\"'")
            if "{{" in name:
                continue
            if not (self.include_dir / name).is_file():
                self._report(path, f"include '{name}' not found in _includes/")


def lint_site(source: Path, config: dict[str, Any] | None = None) -> list[LintIssue]:
    """Run all content checks over a source directory.

    Args:
        source: Source directory of the site.
        config: Optional configuration; loaded from ``_config.yml`` if omitted.

    Returns:
        List of issues, empty when the content is clean.
    """
    return SiteLinter(source, config).run()
