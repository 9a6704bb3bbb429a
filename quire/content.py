"""Content model and reader for Quire.

This module turns the files under the source directory into documents:

- Page: any file outside ``_``-prefixed folders that opens with front matter.
- Post: a file in ``_posts/`` named ``YYYY-MM-DD-slug.ext`` (or, when drafts
  are requested, a file in ``_drafts/``).
- Layout: a template in ``_layouts/``, possibly wrapped by a parent layout.
- StaticFile: anything else, copied to the destination untouched.

Key classes:
- Document: Shared behaviour of pages and posts, including template access
  to arbitrary front matter keys.
- Site: Everything the reader found, plus configuration.
- SiteReader: Walks the source directory and builds a Site.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .collections import LabelIndex, PostCollection
from .config import destination_dir, markdown_extensions
from .errors import BuildError, FrontMatterError, PostFilenameError
from .filters import to_datetime
from .frontmatter import has_front_matter, split_front_matter
from .renderers import Heading
from .utils import (
    coerce_list,
    is_internal_path,
    is_markdown,
    parse_post_filename,
    render_permalink,
    slugify,
    titleize,
)


@dataclass
class Document:
    """A page or post: front matter, source body and rendered output.

    Templates see front matter keys that have no matching attribute through
    ``__getitem__``, so ``page.pagetitle`` or ``post.anything`` resolve to
    the front matter value.

    Attributes:
        path: Path to the source file.
        relative_path: Path relative to the source directory, POSIX style.
        frontmatter: Parsed front matter mapping.
        body: Source text after the front matter block.
        markdown: Whether the body is converted from markdown.
        url: URL path the document is published at.
        content: Rendered body, before any layout is applied.
        output: Final text written to the destination.
    """

    path: Path
    relative_path: str
    frontmatter: dict[str, Any]
    body: str
    markdown: bool = False
    url: str = ""
    content: str = ""
    output: str = ""
    toc: list[Heading] = field(default_factory=list)

    def __getitem__(self, key: str) -> Any:
        if key in self.frontmatter:
            return self.frontmatter[key]
        raise KeyError(key)

    def get(self, key: str, default: Any = None) -> Any:
        return self.frontmatter.get(key, default)

    @property
    def title(self) -> str:
        value = self.frontmatter.get("title")
        return str(value) if value is not None else titleize(self.path.name)

    @property
    def layout(self) -> str | None:
        value = self.frontmatter.get("layout")
        return str(value) if value not in (None, "", "none") else None

    @property
    def output_ext(self) -> str:
        return ".html" if self.markdown else self.path.suffix

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class Page(Document):
    """A standalone page such as the index or a feed."""

    @property
    def pagetitle(self) -> str | None:
        value = self.frontmatter.get("pagetitle")
        return str(value) if value is not None else None


@dataclass(eq=False)
class Post(Document):
    """A dated blog post.

    Attributes:
        date: Publication date, from the filename unless front matter refines it.
        slug: Slug taken from the filename.
        draft: Whether the post comes from ``_drafts/``.
        excerpt: Rendered first paragraph (up to the excerpt separator).
        previous: The next older post, if any.
        next: The next newer post, if any.
    """

    date: datetime = field(default_factory=datetime.now)
    slug: str = ""
    draft: bool = False
    excerpt: str = ""
    previous: Post | None = None
    next: Post | None = None

    @property
    def categories(self) -> list[str]:
        labels = coerce_list(self.frontmatter.get("category"))
        for label in coerce_list(self.frontmatter.get("categories")):
            if label not in labels:
                labels.append(label)
        return labels

    @property
    def category(self) -> str | None:
        value = self.frontmatter.get("category")
        if value is not None:
            return str(value)
        cats = self.categories
        return cats[0] if cats else None

    @property
    def tags(self) -> list[str]:
        labels = coerce_list(self.frontmatter.get("tags"))
        for label in coerce_list(self.frontmatter.get("tag")):
            if label not in labels:
                labels.append(label)
        return labels

    @property
    def id(self) -> str:
        url = self.url
        if url.endswith(self.output_ext):
            url = url[: -len(self.output_ext)]
        return url.rstrip("/") or "/"

    @property
    def published(self) -> bool:
        return self.frontmatter.get("published", True) is not False

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Post({self.relative_path!r})"


@dataclass
class Layout:
    """A layout template, optionally wrapped by a parent layout."""

    name: str
    path: Path
    frontmatter: dict[str, Any]
    body: str

    @property
    def parent(self) -> str | None:
        value = self.frontmatter.get("layout")
        return str(value) if value not in (None, "", "none") else None


@dataclass
class StaticFile:
    """A file copied to the destination without processing."""

    path: Path
    relative_path: str

    @property
    def url(self) -> str:
        return f"/{self.relative_path}"


@dataclass
class Site:
    """Everything read from the source directory."""

    source: Path
    config: dict[str, Any]
    posts: PostCollection = field(default_factory=lambda: PostCollection([]))
    pages: list[Page] = field(default_factory=list)
    static_files: list[StaticFile] = field(default_factory=list)
    layouts: dict[str, Layout] = field(default_factory=dict)
    time: datetime = field(default_factory=datetime.now)
    warnings: list[str] = field(default_factory=list)

    @property
    def categories(self) -> LabelIndex:
        return LabelIndex.from_posts(self.posts, "categories")

    @property
    def tags(self) -> LabelIndex:
        return LabelIndex.from_posts(self.posts, "tags")

    def to_liquid(self) -> dict[str, Any]:
        """Build the ``site`` variable templates see."""
        payload = dict(self.config)
        payload.update(
            {
                "posts": self.posts,
                "pages": self.pages,
                "static_files": self.static_files,
                "categories": self.categories,
                "tags": self.tags,
                "time": self.time,
            }
        )
        return payload


def read_document_text(path: Path) -> tuple[dict[str, Any], str]:
    """Read a file and split off its front matter, wrapping errors with the path."""
    text = path.read_text(encoding="utf-8")
    try:
        return split_front_matter(text)
    except FrontMatterError as exc:
        raise BuildError(path, str(exc), exc) from exc


class SiteReader:
    """Reads the source directory into a Site.

    Attributes:
        source: Source directory.
        config: Site configuration.
    """

    def __init__(self, source: Path, config: dict[str, Any]):
        self.source = source
        self.config = config
        self.markdown_exts = markdown_extensions(config)
        self.destination = destination_dir(source, config)

    def read(self, include_drafts: bool = False, future: bool = False) -> Site:
        """Read layouts, posts, pages and static files.

        Args:
            include_drafts: Also read posts from ``_drafts/``.
            future: Keep posts dated after the build time.

        Returns:
            Populated Site.

        Raises:
            BuildError: If a file has malformed front matter or a post has an
                invalid date.
        """
        site = Site(source=self.source, config=self.config)
        site.layouts = self.read_layouts()
        posts = self.read_posts(site, future)
        if include_drafts:
            posts.extend(self.read_drafts(site))
        site.posts = PostCollection(posts).sorted()
        _link_neighbours(site.posts)
        site.pages, site.static_files = self.read_pages()
        return site

    def read_layouts(self) -> dict[str, Layout]:
        layouts: dict[str, Layout] = {}
        layout_dir = self.source / "_layouts"
        if not layout_dir.is_dir():
            return layouts
        for path in sorted(layout_dir.iterdir()):
            if not path.is_file() or path.name.startswith("."):
                continue
            frontmatter, body = read_document_text(path)
            layouts[path.stem] = Layout(
                name=path.stem, path=path, frontmatter=frontmatter, body=body
            )
        return layouts

    def read_posts(self, site: Site, future: bool) -> list[Post]:
        posts: list[Post] = []
        post_dir = self.source / "_posts"
        if not post_dir.is_dir():
            return posts
        for path in sorted(post_dir.rglob("*")):
            if not path.is_file() or path.name.startswith("."):
                continue
            try:
                file_date, slug, _ = parse_post_filename(path.name)
            except PostFilenameError as exc:
                site.warnings.append(f"Skipping {self._rel(path)}: {exc}")
                continue
            post = self.build_post(path, file_date, slug)
            if post is None:
                continue
            if not post.published:
                continue
            if not future and post.date > site.time:
                site.warnings.append(
                    f"Skipping {self._rel(path)}: dated in the future ({post.date:%Y-%m-%d})"
                )
                continue
            posts.append(post)
        return posts

    def read_drafts(self, site: Site) -> list[Post]:
        drafts: list[Post] = []
        draft_dir = self.source / "_drafts"
        if not draft_dir.is_dir():
            return drafts
        for path in sorted(draft_dir.iterdir()):
            if not path.is_file() or path.name.startswith("."):
                continue
            mtime = datetime.fromtimestamp(path.stat().st_mtime)
            post = self.build_post(path, mtime, slugify(path.stem), draft=True)
            if post is not None:
                drafts.append(post)
        return drafts

    def build_post(
        self, path: Path, file_date: datetime, slug: str, draft: bool = False
    ) -> Post | None:
        """Create a Post from a source file, or None if it has no front matter."""
        text = path.read_text(encoding="utf-8")
        if not has_front_matter(text):
            return None
        try:
            frontmatter, body = split_front_matter(text)
        except FrontMatterError as exc:
            raise BuildError(path, str(exc), exc) from exc
        post_date = file_date
        if "date" in frontmatter:
            refined = to_datetime(frontmatter["date"])
            if refined is None:
                raise BuildError(path, f"invalid date in front matter: {frontmatter['date']!r}")
            post_date = refined.replace(tzinfo=None)
        post = Post(
            path=path,
            relative_path=self._rel(path),
            frontmatter=frontmatter,
            body=body,
            markdown=is_markdown(path, self.markdown_exts),
            date=post_date,
            slug=slug,
            draft=draft,
        )
        post.url = self.post_url(post)
        return post

    def post_url(self, post: Post) -> str:
        template = str(post.frontmatter.get("permalink") or self.config.get("permalink") or "date")
        d = post.date
        values = {
            "year": f"{d.year:04d}",
            "month": f"{d.month:02d}",
            "day": f"{d.day:02d}",
            "i_month": str(d.month),
            "i_day": str(d.day),
            "short_year": f"{d.year % 100:02d}",
            "y_day": f"{d.timetuple().tm_yday:03d}",
            "title": post.slug,
            "slug": post.slug,
            "categories": "/".join(slugify(c) for c in post.categories),
            "output_ext": post.output_ext,
        }
        return render_permalink(template, values)

    def read_pages(self) -> tuple[list[Page], list[StaticFile]]:
        pages: list[Page] = []
        static_files: list[StaticFile] = []
        for path in sorted(self.source.rglob("*")):
            if not path.is_file():
                continue
            rel = path.relative_to(self.source)
            if self._skip(path, rel):
                continue
            if not _starts_with_front_matter(path):
                static_files.append(StaticFile(path=path, relative_path=rel.as_posix()))
                continue
            frontmatter, body = read_document_text(path)
            page = Page(
                path=path,
                relative_path=rel.as_posix(),
                frontmatter=frontmatter,
                body=body,
                markdown=is_markdown(path, self.markdown_exts),
            )
            page.url = self.page_url(page, rel)
            pages.append(page)
        return pages, static_files

    def page_url(self, page: Page, rel: Path) -> str:
        if page.frontmatter.get("permalink"):
            url = str(page.frontmatter["permalink"])
            return url if url.startswith("/") else f"/{url}"
        parent = rel.parent.as_posix()
        prefix = "" if parent == "." else f"{parent}/"
        if rel.stem == "index":
            return f"/{prefix}"
        if self.config.get("permalink") == "pretty" and page.output_ext == ".html":
            return f"/{prefix}{rel.stem}/"
        return f"/{prefix}{rel.stem}{page.output_ext}"

    def _skip(self, path: Path, rel: Path) -> bool:
        try:
            path.relative_to(self.destination)
            return True
        except ValueError:
            pass
        rel_posix = rel.as_posix()
        included = any(
            fnmatch.fnmatch(rel_posix, pattern) or fnmatch.fnmatch(rel.parts[0], pattern)
            for pattern in self.config.get("include") or []
        )
        if is_internal_path(rel) and not included:
            return True
        if rel.name == "_config.yml":
            return True
        return any(
            fnmatch.fnmatch(rel_posix, pattern) or fnmatch.fnmatch(rel.parts[0], pattern)
            for pattern in self.config.get("exclude") or []
        )

    def _rel(self, path: Path) -> str:
        return path.relative_to(self.source).as_posix()


def _link_neighbours(posts: PostCollection) -> None:
    """Link each post to its chronological neighbours (posts are newest first)."""
    ordered = list(posts)
    for index, post in enumerate(ordered):
        post.next = ordered[index - 1] if index > 0 else None
        post.previous = ordered[index + 1] if index + 1 < len(ordered) else None


def _starts_with_front_matter(path: Path) -> bool:
    with open(path, "rb") as f:
        head = f.read(5)
    return head.startswith(b"---") and has_front_matter(
        path.read_text(encoding="utf-8")
    )
