"""Markdown and code rendering for Quire.

Markdown bodies are converted with mistune. Fenced code blocks tagged with
a language name are highlighted with Pygments, the same way ``{% highlight %}``
blocks in templates are.

Key classes:
- MarkdownConverter: Renders Markdown to HTML and collects headings.
- Heading: A heading found while rendering, with its anchor id.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import mistune
from markupsafe import escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound


@dataclass
class Heading:
    """A heading extracted from markdown content.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The text content of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly containing inline HTML.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


def highlight_code(code: str, lang: str | None = None) -> str:
    """Render a code sample as a highlighted ``<pre>`` block.

    Unknown or missing languages fall back to escaped, unhighlighted code.
    The result always starts with ``<pre`` so that markdown treats it as a
    single raw HTML block even when the code contains blank lines.

    Args:
        code: Source code to render.
        lang: Language name understood by Pygments.

    Returns:
        HTML string.
    """
    code = code.strip("\n") + "\n"
    body = None
    if lang:
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            lexer = None
        if lexer is not None:
            body = highlight(code, lexer, HtmlFormatter(nowrap=True))
    if body is None:
        body = str(escape(code))
    attrs = f' class="language-{lang}" data-lang="{lang}"' if lang else ""
    return f'<pre class="highlight"><code{attrs}>{body}</code></pre>\n'


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer adding heading ids and Pygments code highlighting."""

    def __init__(self):
        super().__init__(escape=False)
        self.headings: list[Heading] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info and info.strip() else None
        return highlight_code(code, lang)


class MarkdownConverter:
    """Converts Markdown text to HTML."""

    plugins = ["strikethrough", "footnotes", "table", "url"]

    def convert(self, text: str) -> tuple[str, list[Heading]]:
        """Render Markdown content to HTML.

        Args:
            text: Markdown source.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        renderer = _HighlightRenderer()
        markdown = mistune.create_markdown(renderer=renderer, plugins=self.plugins)
        return markdown(text), renderer.headings

    def __call__(self, text: str) -> str:
        return self.convert(text)[0]
