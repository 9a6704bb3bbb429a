"""Template rendering engine for Quire.

Documents are rendered the way Jekyll renders them:

1. The body is rendered as a Liquid template with ``page`` and ``site`` in
   context.
2. Markdown documents are converted to HTML.
3. For posts, the excerpt is the part of the rendered source before the
   excerpt separator, converted the same way.
4. The result is wrapped in the document's layout, then in that layout's
   own layout, and so on. Layouts see ``content``, ``page``, ``site`` and
   ``layout`` (the layout's front matter).

Key class:
- TemplateEngine: Holds the Jinja environment and renders documents.
"""

from __future__ import annotations

from typing import Any

from jinja2 import StrictUndefined, Template, TemplateSyntaxError, Undefined

from .content import Document, Layout, Post, Site
from .errors import BuildError, LayoutError
from .filters import install_filters
from .frontmatter import body_line_offset
from .liquid import LiquidEnvironment, LiquidLoader, translate
from .renderers import MarkdownConverter

__all__ = ["TemplateEngine"]


class TemplateEngine:
    """Renders documents through Liquid templates, markdown and layouts.

    Attributes:
        site: The site being built.
        env: Jinja environment with the Liquid filters installed.
        markdown: Markdown converter.
        warnings: Non-fatal problems found while rendering.
    """

    def __init__(self, site: Site, markdown: MarkdownConverter | None = None):
        """Initialize the template engine.

        Args:
            site: Site whose layouts and includes are used.
            markdown: Optional custom markdown converter.
        """
        self.site = site
        self.markdown = markdown or MarkdownConverter()
        undefined = StrictUndefined if site.config.get("strict_variables") else Undefined
        self.env = LiquidEnvironment(
            loader=LiquidLoader(str(site.source / "_includes")),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=undefined,
            extensions=["jinja2.ext.loopcontrols"],
        )
        install_filters(self.env, site.config, self.markdown)
        self.warnings: list[str] = []
        self._layout_templates: dict[str, Template] = {}
        self._site_payload: dict[str, Any] | None = None

    @property
    def site_payload(self) -> dict[str, Any]:
        if self._site_payload is None:
            self._site_payload = self.site.to_liquid()
        return self._site_payload

    def render_liquid(self, source: str, context: dict[str, Any]) -> str:
        """Render a Liquid template string.

        Args:
            source: Liquid template source.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        template = self.env.from_string(translate(source))
        return template.render(**context)

    def render_document(self, doc: Document) -> str:
        """Render a page or post, filling in ``content``, ``excerpt`` and ``output``.

        Args:
            doc: Document to render.

        Returns:
            The final output text.
        """
        context = {"page": doc, "site": self.site_payload}
        rendered = self.render_liquid(doc.body, context)
        if doc.markdown:
            doc.content, doc.toc = self.markdown.convert(rendered)
        else:
            doc.content = rendered
        if isinstance(doc, Post):
            doc.excerpt = self._excerpt(doc, rendered)
        doc.output = self.place_in_layout(doc, doc.content)
        return doc.output

    def _excerpt(self, post: Post, rendered: str) -> str:
        separator = str(
            post.frontmatter.get("excerpt_separator")
            or self.site.config.get("excerpt_separator")
            or "\n\n"
        )
        head = rendered.lstrip("\n").split(separator, 1)[0]
        if post.markdown:
            return self.markdown(head)
        return head

    def place_in_layout(self, doc: Document, content: str) -> str:
        """Wrap content in the document's layout chain.

        A layout that does not exist is reported as a warning and the content
        is used as-is from that point.

        Raises:
            LayoutError: If the layout chain loops.
        """
        name = doc.layout
        seen: list[str] = []
        output = content
        while name:
            if name in seen:
                chain = " -> ".join(seen + [name])
                raise LayoutError(f"layout chain loops: {chain}")
            seen.append(name)
            layout = self.site.layouts.get(name)
            if layout is None:
                self.warnings.append(
                    f"Layout '{name}' requested in {doc.relative_path} does not exist."
                )
                break
            template = self._layout_template(layout)
            output = template.render(
                content=output,
                page=doc,
                site=self.site_payload,
                layout=layout.frontmatter,
            )
            name = layout.parent
        return output

    def _layout_template(self, layout: Layout) -> Template:
        template = self._layout_templates.get(layout.name)
        if template is None:
            try:
                template = self.env.from_string(translate(layout.body))
            except TemplateSyntaxError as exc:
                offset = body_line_offset(layout.path.read_text(encoding="utf-8"))
                raise BuildError(
                    layout.path,
                    f"Template syntax error on line {(exc.lineno or 0) + offset}: {exc.message}",
                    exc,
                ) from exc
            self._layout_templates[layout.name] = template
        return template
