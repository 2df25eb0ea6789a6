"""Tests for CLI commands."""

import pytest
import yaml
from click.testing import CliRunner

from texrender.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(vault, fake_command, monkeypatch, tmp_path):
    """Document root with a project config pointing at the fake renderer."""
    monkeypatch.setattr(
        "texrender.config.hierarchy._GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"
    )
    config = {"command": fake_command, "debounce_seconds": 60.0}
    (vault / "texrender.yaml").write_text(yaml.safe_dump(config))
    return vault


class TestCLIGroup:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "texrender" in result.output
        for command in ("render", "blocks", "sweep", "config", "cache"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0


class TestRenderCommand:
    def test_help(self, runner):
        result = runner.invoke(cli, ["render", "--help"])
        assert result.exit_code == 0
        assert "--root" in result.output
        assert "--output" in result.output
        assert "--no-cache" in result.output

    def test_nonexistent_file(self, runner):
        result = runner.invoke(cli, ["render", "nonexistent_file.md"])
        assert result.exit_code != 0

    def test_writes_html_page(self, runner, project, latex_doc, tmp_path):
        doc = project / "d.md"
        doc.write_text(latex_doc("x", "%css%color: red;\ny"))
        out = tmp_path / "out.html"

        result = runner.invoke(
            cli, ["render", str(doc), "--root", str(project), "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        page = out.read_text()
        assert page.count('<div class="texrender-block"') == 2
        assert 'style="color: red;"' in page
        assert "<svg" in page
        assert (project / "svg-cache").is_dir()

    def test_prints_fragments(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        result = runner.invoke(cli, ["render", str(doc), "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert "texrender-block" in result.output

    def test_failure_exits_nonzero(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("\\fail"))
        result = runner.invoke(cli, ["render", str(doc), "--root", str(project)])
        assert result.exit_code == 1
        assert "Undefined control sequence" in result.output

    def test_no_cache(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        result = runner.invoke(
            cli, ["render", str(doc), "--root", str(project), "--no-cache"]
        )
        assert result.exit_code == 0, result.output
        assert not (project / "svg-cache").exists()

    def test_document_outside_root(self, runner, project, tmp_path):
        outside = tmp_path / "outside.md"
        outside.write_text("text\n")
        result = runner.invoke(cli, ["render", str(outside), "--root", str(project)])
        assert result.exit_code == 1
        assert "not inside the document root" in result.output

    def test_unsafe_cache_folder_rejected(self, runner, project, fake_command, latex_doc):
        (project / "texrender.yaml").write_text(
            yaml.safe_dump({"command": fake_command, "cache_folder": "."})
        )
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        result = runner.invoke(cli, ["render", str(doc), "--root", str(project)])
        assert result.exit_code == 1
        assert "contains the document root" in result.output
        assert doc.exists()


class TestBlocksCommand:
    def test_lists_blocks(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x", "y"))
        result = runner.invoke(cli, ["blocks", str(doc), "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert "Latex blocks in d.md" in result.output
        assert "yes" not in result.output

    def test_shows_cached(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        runner.invoke(cli, ["render", str(doc), "--root", str(project)])
        result = runner.invoke(cli, ["blocks", str(doc), "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert "yes" in result.output


class TestSweepCommand:
    def test_reports_missing_documents(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        runner.invoke(cli, ["render", str(doc), "--root", str(project)])
        doc.unlink()

        result = runner.invoke(cli, ["sweep", "--root", str(project)])

        assert result.exit_code == 0, result.output
        assert "Documents missing" in result.output
        assert "Documents unreadable" in result.output
        assert list((project / "svg-cache").iterdir()) == []


class TestConfigCommand:
    def test_shows_settings(self, runner, project):
        result = runner.invoke(cli, ["config", "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert "timeout_ms" in result.output
        assert "cache_folder" in result.output

    def test_invalid_config(self, runner, project):
        (project / "texrender.yaml").write_text("timeout_ms: -5\n")
        result = runner.invoke(cli, ["config", "--root", str(project)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestCacheCommands:
    def test_cache_help(self, runner):
        result = runner.invoke(cli, ["cache", "--help"])
        assert result.exit_code == 0
        assert "stats" in result.output
        assert "clear" in result.output

    def test_stats(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        runner.invoke(cli, ["render", str(doc), "--root", str(project)])
        result = runner.invoke(cli, ["cache", "stats", "--root", str(project)])
        assert result.exit_code == 0, result.output
        assert "Cache Statistics" in result.output
        assert "Entries" in result.output

    def test_clear(self, runner, project, latex_doc):
        doc = project / "d.md"
        doc.write_text(latex_doc("x"))
        runner.invoke(cli, ["render", str(doc), "--root", str(project)])

        result = runner.invoke(cli, ["cache", "clear", "--root", str(project), "--yes"])

        assert result.exit_code == 0, result.output
        assert "Cache cleared" in result.output
        assert list((project / "svg-cache").iterdir()) == []

    def test_clear_requires_confirmation(self, runner, project):
        result = runner.invoke(cli, ["cache", "clear", "--root", str(project)], input="n\n")
        assert result.exit_code != 0
