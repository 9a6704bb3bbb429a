"""Command-line interface for Quire.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into its destination directory.
- serve: Build, serve locally and rebuild on change.
- check: Run the content checks over the source directory.
- new-post: Create a dated post file with front matter.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .errors import BuildError, ConfigError
from .utils import POST_FILENAME_RE, slugify

DEFAULT_SOURCE = "site"

source_option = click.option(
    "--source",
    "-s",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_SOURCE,
    show_default=True,
    help="Site source directory",
)


@click.group()
@click.version_option(version=__version__, prog_name="quire")
def cli():
    """Build and check the blog."""


@cli.command()
@source_option
@click.option(
    "--destination",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (overrides _config.yml destination)",
)
@click.option("--drafts", is_flag=True, help="Include posts from _drafts/")
@click.option("--future", is_flag=True, help="Include future-dated posts")
def build(source: Path, destination: Path | None, drafts: bool, future: bool):
    """Build the site into the destination directory."""
    from .build import build_site

    try:
        result = build_site(
            source,
            destination=destination,
            include_drafts=drafts,
            future=future or None,
        )
    except BuildError as exc:
        _report_build_failure(exc.source_path, exc.message)
        raise SystemExit(1) from None
    except ConfigError as exc:
        _report_build_failure(source, str(exc))
        raise SystemExit(1) from None
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    for warning in result.warnings:
        click.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)
    click.echo(
        f"Built {len(result.posts)} posts and {len(result.pages)} pages "
        f"into {result.output_dir}"
    )


def _report_build_failure(path: Path, message: str) -> None:
    try:
        shown = path.relative_to(Path.cwd())
    except ValueError:
        shown = path
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)


@cli.command()
@source_option
@click.option("--host", type=str, default=None, help="Interface to bind (overrides _config.yml)")
@click.option("--port", type=int, default=None, help="Port to serve on (overrides _config.yml)")
@click.option("--drafts", is_flag=True, help="Include posts from _drafts/")
@click.option("--future", is_flag=True, help="Include future-dated posts")
def serve(source: Path, host: str | None, port: int | None, drafts: bool, future: bool):
    """Build, serve locally and rebuild on change."""
    from .server import DevServer

    server = DevServer(
        source, host=host, port=port, include_drafts=drafts, future=future or None
    )
    server.start()


@cli.command()
@source_option
@click.option("--strict", is_flag=True, help="Treat warnings as failures")
def check(source: Path, strict: bool):
    """Check front matter, post filenames, layouts and includes."""
    from .lint import ERROR, lint_site

    if not source.is_dir():
        raise click.ClickException(f"Expected site directory at {source}")
    try:
        issues = lint_site(source)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from None
    for issue in issues:
        colour = "red" if issue.severity == ERROR else "yellow"
        click.echo(click.style(issue.format(source), fg=colour))
    errors = sum(1 for issue in issues if issue.severity == ERROR)
    warnings = len(issues) - errors
    if errors or (strict and warnings):
        click.echo(f"{errors} error(s), {warnings} warning(s)", err=True)
        raise SystemExit(1)
    click.echo(f"Content OK ({warnings} warning(s))")


@cli.command("new-post")
@click.argument("title", required=False)
@source_option
@click.option("--category", "-c", default=None, help="Post category")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
@click.option(
    "--date",
    "date_",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Publication date (defaults to today)",
)
def new_post(
    title: str | None,
    source: Path,
    category: str | None,
    tags: tuple[str, ...],
    date_: datetime | None,
):
    """Create a new post in _posts/ named after its date and title."""
    if not source.is_dir():
        raise click.ClickException(f"Expected site directory at {source}")

    if not title:
        title = questionary.text(
            "Post title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
    title = title.strip()
    slug = slugify(title)
    if not slug:
        raise click.ClickException(f"Cannot derive a filename from title {title!r}")

    post_dir = source / "_posts"
    existing = _existing_slugs(post_dir)
    if slug in existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[slug]}"
        )

    published = date_ or datetime.now()
    filename = f"{published:%Y-%m-%d}-{slug}.md"
    frontmatter: dict = {"layout": "post", "title": title}
    if category:
        frontmatter["category"] = category
    frontmatter["tags"] = list(tags)

    post_dir.mkdir(parents=True, exist_ok=True)
    target = post_dir / filename
    header = yaml.safe_dump(frontmatter, sort_keys=False, default_flow_style=None)
    target.write_text(f"---\n{header}---\n\n", encoding="utf-8")
    click.echo(f"Created {target}")


def _existing_slugs(post_dir: Path) -> dict[str, str]:
    """Map slug to filename for the posts already in post_dir."""
    slugs: dict[str, str] = {}
    if not post_dir.is_dir():
        return slugs
    for path in post_dir.iterdir():
        match = POST_FILENAME_RE.match(path.name)
        if match:
            slugs[match.group(4).lower()] = path.name
    return slugs


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
