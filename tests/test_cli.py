from datetime import datetime

from click.testing import CliRunner

from conftest import write
from quire import __version__
from quire.cli import cli


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build_command(site_dir):
    runner = CliRunner()
    result = runner.invoke(cli, ["build", "--source", str(site_dir)], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 2 posts and 2 pages into" in result.output
    assert (site_dir / "_site" / "index.html").exists()


def test_build_command_destination_and_flags(site_dir, tmp_path):
    write(site_dir / "_drafts" / "idea.md", "---\ntitle: Idea\n---\nsoon\n")
    target = tmp_path / "public"
    result = CliRunner().invoke(
        cli, ["build", "-s", str(site_dir), "-d", str(target), "--drafts"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "Built 3 posts" in result.output
    assert (target / "index.html").exists()


def test_build_failure_is_reported(site_dir):
    write(site_dir / "bad.html", "---\ntitle: Bad\n---\n{% if %}\n")
    result = CliRunner().invoke(cli, ["build", "--source", str(site_dir)])
    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert "bad.html" in result.output
    assert "Template syntax error on line 4" in result.output


def test_build_warnings_are_shown(site_dir):
    write(site_dir / "_posts" / "undated.md", "---\ntitle: x\n---\nx\n")
    result = CliRunner().invoke(cli, ["build", "--source", str(site_dir)])
    assert result.exit_code == 0
    assert "Warning: Skipping _posts/undated.md" in result.output


def test_build_missing_source(tmp_path):
    result = CliRunner().invoke(cli, ["build", "--source", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "Expected site directory" in result.output


def test_serve_passes_options(monkeypatch, site_dir):
    called = {}

    class DummyServer:
        def __init__(self, source, host=None, port=None, include_drafts=False, future=None):
            called.update(source=source, host=host, port=port, drafts=include_drafts, future=future)

        def start(self):
            called["started"] = True

    monkeypatch.setattr("quire.server.DevServer", DummyServer)
    result = CliRunner().invoke(
        cli,
        ["serve", "-s", str(site_dir), "--port", "5050", "--drafts"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert called == {
        "source": site_dir,
        "host": None,
        "port": 5050,
        "drafts": True,
        "future": None,
        "started": True,
    }


def test_check_clean_site(site_dir):
    result = CliRunner().invoke(cli, ["check", "--source", str(site_dir)])
    assert result.exit_code == 0
    assert "Content OK (0 warning(s))" in result.output


def test_check_reports_errors(site_dir):
    write(site_dir / "_posts" / "undated.md", "---\ntitle: x\nlayout: post\n---\nx\n")
    result = CliRunner().invoke(cli, ["check", "--source", str(site_dir)])
    assert result.exit_code == 1
    assert "_posts/undated.md: error:" in result.output
    assert "1 error(s), 0 warning(s)" in result.output


def test_check_strict_fails_on_warnings(site_dir):
    write(site_dir / "_posts" / "2014-03-01-untitled.md", "---\nlayout: post\n---\nx\n")
    runner = CliRunner()
    result = runner.invoke(cli, ["check", "--source", str(site_dir)])
    assert result.exit_code == 0
    assert "Content OK (1 warning(s))" in result.output
    result = runner.invoke(cli, ["check", "--source", str(site_dir), "--strict"])
    assert result.exit_code == 1


def test_new_post(site_dir):
    runner = CliRunner()
    result = runner.invoke(
        cli,
        [
            "new-post",
            "Context Managers, Revisited!",
            "-s",
            str(site_dir),
            "-c",
            "programming",
            "-t",
            "python",
            "-t",
            "context managers",
            "--date",
            "2014-03-05",
        ],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    target = site_dir / "_posts" / "2014-03-05-context-managers-revisited.md"
    assert target.exists()
    assert target.read_text(encoding="utf-8") == (
        "---\n"
        "layout: post\n"
        "title: Context Managers, Revisited!\n"
        "category: programming\n"
        "tags: [python, context managers]\n"
        "---\n\n"
    )


def test_new_post_defaults_to_today(site_dir):
    result = CliRunner().invoke(cli, ["new-post", "Fresh", "-s", str(site_dir)])
    assert result.exit_code == 0
    today = datetime.now().strftime("%Y-%m-%d")
    assert (site_dir / "_posts" / f"{today}-fresh.md").exists()


def test_new_post_rejects_duplicate_slug(site_dir):
    result = CliRunner().invoke(cli, ["new-post", "Hello World", "-s", str(site_dir)])
    assert result.exit_code == 1
    assert "A post with slug 'hello-world' already exists: 2014-02-10-hello-world.md" in result.output


def test_new_post_prompts_for_title(monkeypatch, site_dir):
    class FakePrompt:
        def ask(self):
            return "Prompted Title"

    monkeypatch.setattr("quire.cli.questionary.text", lambda *args, **kwargs: FakePrompt())
    result = CliRunner().invoke(
        cli, ["new-post", "-s", str(site_dir), "--date", "2014-04-01"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert (site_dir / "_posts" / "2014-04-01-prompted-title.md").exists()
