import pytest

from conftest import write
from quire.build import build_site
from quire.errors import BuildError, ConfigError


def test_build_writes_posts_pages_and_static_files(site_dir):
    result = build_site(site_dir)
    out = site_dir / "_site"
    assert result.output_dir == out
    assert len(result.posts) == 2
    assert len(result.pages) == 2
    assert (out / "index.html").exists()
    assert (out / "about.html").exists()
    assert (out / "programming" / "2014" / "02" / "10" / "hello-world.html").exists()
    assert (out / "2014" / "02" / "16" / "second-post.html").exists()
    assert (out / "css" / "style.css").read_text(encoding="utf-8") == "body { color: black; }\n"
    assert not (out / "README.md").exists()
    assert not (out / "_posts").exists()
    about = (out / "about.html").read_text(encoding="utf-8")
    assert '<h1 id="about-me">About me</h1>' in about


def test_index_lists_posts_newest_first(site_dir):
    build_site(site_dir)
    index = (site_dir / "_site" / "index.html").read_text(encoding="utf-8")
    assert index.index("Second Post") < index.index("Hello World")
    assert "<title>Home | Test Blog</title>" in index


def test_rebuild_cleans_stale_output(site_dir):
    build_site(site_dir)
    stale = site_dir / "_site" / "stale.html"
    stale.write_text("old", encoding="utf-8")
    build_site(site_dir)
    assert not stale.exists()

    stale.write_text("old", encoding="utf-8")
    build_site(site_dir, clean_output=False)
    assert stale.exists()


def test_destination_override(site_dir, tmp_path):
    target = tmp_path / "public"
    result = build_site(site_dir, destination=target)
    assert result.output_dir == target
    assert (target / "index.html").exists()
    assert not (site_dir / "_site").exists()


def test_destination_may_not_contain_the_source(site_dir):
    with pytest.raises(ConfigError):
        build_site(site_dir, destination=site_dir)
    with pytest.raises(ConfigError):
        build_site(site_dir, destination=site_dir.parent)


def test_missing_source_raises(tmp_path):
    with pytest.raises(FileNotFoundError, match="Expected site directory"):
        build_site(tmp_path / "missing")


def test_invalid_config_raises(site_dir):
    write(site_dir / "_config.yml", "title: [oops\n")
    with pytest.raises(ConfigError, match="invalid YAML"):
        build_site(site_dir)


def test_drafts_and_future_follow_flags_and_config(site_dir):
    write(site_dir / "_drafts" / "idea.md", "---\ntitle: Idea\n---\nsoon\n")
    write(site_dir / "_posts" / "2999-01-01-later.md", "---\ntitle: Later\n---\nlater\n")
    result = build_site(site_dir)
    assert len(result.posts) == 2
    assert any("2999-01-01-later.md" in w for w in result.warnings)

    result = build_site(site_dir, include_drafts=True, future=True)
    assert {p.slug for p in result.posts} == {"idea", "later", "hello-world", "second-post"}

    write(site_dir / "_config.yml", "title: Test Blog\nfuture: true\nshow_drafts: true\n")
    result = build_site(site_dir)
    assert len(result.posts) == 4
    result = build_site(site_dir, future=False)
    assert len(result.posts) == 3


def test_template_syntax_error_reports_line(site_dir):
    write(site_dir / "bad.html", "---\ntitle: Bad\n---\nline one\n{% if %}\n")
    with pytest.raises(BuildError) as excinfo:
        build_site(site_dir)
    assert excinfo.value.source_path.name == "bad.html"
    assert "Template syntax error on line 5" in excinfo.value.message


def test_missing_include_is_reported(site_dir):
    write(site_dir / "inc.html", "---\ntitle: Inc\n---\n{% include nope.html %}\n")
    with pytest.raises(BuildError) as excinfo:
        build_site(site_dir)
    assert excinfo.value.source_path.name == "inc.html"
    assert excinfo.value.message == "Include not found: nope.html"


def test_broken_include_points_at_include_file(site_dir):
    write(site_dir / "_includes" / "nav.html", "{% for %}")
    with pytest.raises(BuildError) as excinfo:
        build_site(site_dir)
    assert excinfo.value.source_path.name == "nav.html"


def test_strict_variables(site_dir):
    write(site_dir / "vars.html", "---\ntitle: Vars\n---\n{{ page.nothing }}\n")
    build_site(site_dir)
    with pytest.raises(BuildError) as excinfo:
        build_site(site_dir, config_overrides={"strict_variables": True})
    assert excinfo.value.message.startswith("Undefined variable:")


def test_layout_loop_is_a_build_error(site_dir):
    write(site_dir / "_layouts" / "default.html", "---\nlayout: post\n---\n{{ content }}")
    with pytest.raises(BuildError) as excinfo:
        build_site(site_dir)
    assert "layout chain loops" in excinfo.value.message


def test_missing_layout_warns_but_builds(site_dir):
    write(site_dir / "about.md", "---\nlayout: gone\n---\nhi\n")
    result = build_site(site_dir)
    assert "Layout 'gone' requested in about.md does not exist." in result.warnings
    assert (site_dir / "_site" / "about.html").read_text(encoding="utf-8") == "<p>hi</p>\n"


def test_colliding_output_paths_warn(site_dir):
    write(site_dir / "about.html", "---\ntitle: About\n---\n<p>html</p>\n")
    result = build_site(site_dir)
    assert "about.md overwrites about.html at about.html." in result.warnings
    assert "About me" in (site_dir / "_site" / "about.html").read_text(encoding="utf-8")
