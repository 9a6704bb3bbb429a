from pathlib import Path

import pytest


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def create_site(root: Path) -> Path:
    """Create a small site with a layout chain, two posts, an index and a static file."""
    site = root / "site"
    write(
        site / "_config.yml",
        "title: Test Blog\nauthor: Tester\nurl: https://example.com\nexclude:\n  - README.md\n",
    )
    write(
        site / "_layouts" / "default.html",
        "<html><title>{{ page.title }} | {{ site.title }}</title>"
        "<body>{% include nav.html %}{{ content }}</body></html>\n",
    )
    write(
        site / "_layouts" / "post.html",
        "---\nlayout: default\n---\n<article>{{ content }}"
        "{% if page.previous %}<a class=\"prev\" href=\"{{ page.previous.url }}\">prev</a>{% endif %}"
        "</article>\n",
    )
    write(site / "_includes" / "nav.html", "<nav>{{ site.posts.size }} posts</nav>")
    write(
        site / "_posts" / "2014-02-10-hello-world.md",
        "---\nlayout: post\ntitle: Hello World\ncategory: programming\n"
        "tags: [python, notes]\n---\nFirst paragraph.\n\nSecond paragraph.\n",
    )
    write(
        site / "_posts" / "2014-02-16-second-post.md",
        "---\nlayout: post\ntitle: Second Post\ntags: [python]\n---\n"
        "## Code\n\n```python\nprint('hi')\n```\n",
    )
    write(
        site / "index.html",
        "---\nlayout: default\ntitle: Home\npagetitle: Welcome\n---\n"
        "<ul>{% for post in site.posts %}<li><a href=\"{{ post.url }}\">{{ post.title }}</a></li>"
        "{% endfor %}</ul>\n",
    )
    write(site / "about.md", "---\nlayout: default\ntitle: About\n---\n# About me\n")
    write(site / "css" / "style.css", "body { color: black; }\n")
    write(site / "README.md", "Not part of the site.\n")
    write(site / "_hidden" / "secret.md", "---\ntitle: Secret\n---\nhidden\n")
    return site


@pytest.fixture
def site_dir(tmp_path) -> Path:
    return create_site(tmp_path)
