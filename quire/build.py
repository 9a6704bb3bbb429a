"""Site building functionality for Quire.

This module contains the core logic for building the blog from its source
directory: load configuration, read content, render posts then pages,
write the output and copy static files.

Key functions:
- build_site: Main function to build the entire site.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import TemplateSyntaxError

from .config import destination_dir, load_config
from .content import Document, Page, Post, SiteReader, StaticFile
from .errors import BuildError, ConfigError
from .frontmatter import body_line_offset
from .templates import TemplateEngine
from .utils import ensure_clean_dir, url_to_output_path


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Posts that were built, newest first.
        pages: Pages that were built.
        static_files: Files copied without processing.
        output_dir: Directory where the site was built.
        config: Configuration the build used.
        warnings: Non-fatal problems found while reading and rendering.
    """

    posts: list[Post]
    pages: list[Page]
    static_files: list[StaticFile]
    output_dir: Path
    config: dict[str, Any]
    warnings: list[str] = field(default_factory=list)


def build_site(
    source: Path,
    destination: Path | None = None,
    include_drafts: bool = False,
    future: bool | None = None,
    clean_output: bool = True,
    config_overrides: dict[str, Any] | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        source: Source directory holding ``_config.yml``, ``_posts`` and pages.
        destination: Optional output directory; defaults to the configured
            ``destination`` inside the source directory.
        include_drafts: Whether to build posts from ``_drafts/``.
        future: Whether to build posts dated in the future. None defers to
            the ``future`` setting in the configuration.
        clean_output: Whether to wipe the output directory before building.
        config_overrides: Values that take precedence over ``_config.yml``.

    Returns:
        BuildResult describing what was written.

    Raises:
        FileNotFoundError: If the source directory does not exist.
        ConfigError: If ``_config.yml`` cannot be loaded.
        BuildError: If any document fails to read or render.
    """
    if not source.is_dir():
        raise FileNotFoundError(f"Expected site directory at {source}")
    overrides = dict(config_overrides or {})
    if destination is not None:
        overrides["destination"] = str(destination)
    config = load_config(source, overrides)
    output_dir = destination_dir(source, config)
    resolved_source = source.resolve()
    if output_dir.resolve() in (resolved_source, *resolved_source.parents):
        raise ConfigError(
            f"destination {output_dir} would overwrite the source directory"
        )
    if future is None:
        future = bool(config.get("future"))
    include_drafts = include_drafts or bool(config.get("show_drafts"))

    site = SiteReader(source, config).read(include_drafts=include_drafts, future=future)
    engine = TemplateEngine(site)

    # Posts first, so pages looping over site.posts see rendered content.
    for post in site.posts:
        _render(engine, post)
    for page in site.pages:
        _render(engine, page)

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)
    warnings = site.warnings + engine.warnings
    written: dict[Path, str] = {}
    for doc in [*site.posts, *site.pages]:
        target = url_to_output_path(doc.url)
        if target in written:
            warnings.append(
                f"{doc.relative_path} overwrites {written[target]} at {target.as_posix()}."
            )
        written[target] = doc.relative_path
        _write_document(output_dir, doc)
    for static in site.static_files:
        target = output_dir / static.relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(static.path, target)

    return BuildResult(
        posts=list(site.posts),
        pages=site.pages,
        static_files=site.static_files,
        output_dir=output_dir,
        config=config,
        warnings=warnings,
    )


def _render(engine: TemplateEngine, doc: Document) -> None:
    try:
        engine.render_document(doc)
    except BuildError:
        raise
    except TemplateSyntaxError as exc:
        if exc.filename:
            # Raised while compiling an include, not the document itself.
            raise BuildError(
                Path(exc.filename),
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        offset = body_line_offset(doc.path.read_text(encoding="utf-8"))
        raise BuildError(
            doc.path,
            f"Template syntax error on line {(exc.lineno or 0) + offset}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(doc.path, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Include not found: {error_msg}"
    if error_type == "LayoutError":
        return error_msg

    return f"{error_type}: {error_msg}"


def _write_document(output_dir: Path, doc: Document) -> None:
    """Write a rendered document to the path its URL maps to.

    Args:
        output_dir: Base output directory.
        doc: Rendered document.
    """
    target = output_dir / url_to_output_path(doc.url)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(doc.output)
