"""Integration tests for CLI commands."""

import json
from pathlib import Path

from typer.testing import CliRunner

from rubygraph_cli import __version__, config
from rubygraph_cli.cli import app
from rubygraph_cli.config_manager import load_settings

runner = CliRunner()


class TestAnalyzeCommand:
    """Tests for 'rubygraph analyze'."""

    def test_analyze_prints_dot(self, sample_app_path: Path):
        result = runner.invoke(app, ["analyze", str(sample_app_path)])

        assert result.exit_code == 0
        assert "digraph ClassGraph {" in result.output
        assert "Classes: 5" in result.output
        assert "Skipped: 1" in result.output

    def test_analyze_writes_json(self, sample_app_path: Path, temp_dir: Path):
        target = temp_dir / "graph.json"
        result = runner.invoke(
            app, ["analyze", str(sample_app_path), "--format", "json", "--output", str(target)]
        )

        assert result.exit_code == 0
        payload = json.loads(target.read_text(encoding="utf-8"))
        names = {e["name"] for e in payload["entities"]}
        assert "Admin::ReportGenerator" in names

    def test_analyze_mermaid_with_literal_defaults(self, sample_app_path: Path):
        result = runner.invoke(
            app, ["analyze", str(sample_app_path), "-f", "mermaid", "--literal-defaults"]
        )

        assert result.exit_code == 0
        assert "classDiagram" in result.output
        assert "deliver(user, options = {})" in result.output

    def test_analyze_with_path_option(self, sample_app_path: Path):
        result = runner.invoke(app, ["analyze", str(sample_app_path), "--path", "lib"])

        assert result.exit_code == 0
        assert "Classes: 1" in result.output

    def test_analyze_nonexistent_path(self):
        result = runner.invoke(app, ["analyze", "/nonexistent/path"])
        assert result.exit_code != 0

    def test_analyze_unknown_format(self, sample_app_path: Path):
        result = runner.invoke(app, ["analyze", str(sample_app_path), "--format", "svg"])
        assert result.exit_code != 0

    def test_analyze_empty_project(self, temp_dir: Path):
        result = runner.invoke(app, ["analyze", str(temp_dir)])

        assert result.exit_code == 0
        assert "No classes found" in result.output


class TestInspectCommand:
    """Tests for 'rubygraph inspect'."""

    def test_inspect_file(self, sample_app_path: Path):
        result = runner.invoke(app, ["inspect", str(sample_app_path / "app" / "models" / "user.rb")])

        assert result.exit_code == 0
        assert "User < ApplicationRecord" in result.output
        assert "find_by_email(email)" in result.output
        assert "UserService.persist" in result.output
        assert "normalize_email" not in result.output

    def test_inspect_broken_file(self, sample_app_path: Path):
        result = runner.invoke(app, ["inspect", str(sample_app_path / "app" / "broken.rb")])
        assert result.exit_code == 1

    def test_inspect_missing_file(self):
        result = runner.invoke(app, ["inspect", "/nonexistent/file.rb"])
        assert result.exit_code != 0


class TestConfigCommand:
    """Tests for 'rubygraph config'."""

    def test_config_shows_defaults(self):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "placeholder" in result.output
        assert "app, lib" in result.output
        assert not config.CONFIG_FILE.exists()

    def test_config_saves_settings(self):
        result = runner.invoke(
            app, ["config", "--default-rendering", "literal", "--workers", "2", "--scan-path", "engines"]
        )

        assert result.exit_code == 0
        assert "literal" in result.output
        settings = load_settings()
        assert settings.default_rendering == "literal"
        assert settings.workers == 2
        assert settings.scan_paths == ["engines"]
        assert settings.label_limit == config.DEFAULT_LABEL_LIMIT

    def test_config_rejects_unknown_rendering(self):
        result = runner.invoke(app, ["config", "--default-rendering", "verbatim"])
        assert result.exit_code != 0
        assert not config.CONFIG_FILE.exists()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output
