"""Quire, the build tool behind this blog.

This package reads the blog's content (front matter, Liquid-style templates,
markdown posts) and renders it to static HTML. It understands the Jekyll
content contract used by the files under ``site/`` and nothing more.

The main entry point is the CLI module, which provides commands for building
the site, checking content, serving it locally and starting a new post.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
