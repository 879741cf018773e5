"""Tests for restforge CLI commands."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from restforge.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def in_tests_dir(monkeypatch):
    """Make the blog sample app importable as ``blog``."""
    monkeypatch.chdir(Path(__file__).parent)


class TestHelp:
    def test_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "serve" in result.output
        assert "routes" in result.output


class TestRoutes:
    def test_prints_route_table(self, runner, in_tests_dir):
        result = runner.invoke(cli, ["routes", "blog:build_app", "--factory"])
        assert result.exit_code == 0, result.output
        assert "/articles/{id}" in result.output
        assert "articles.delete" in result.output
        assert "comments.index" in result.output
        assert "comments.create" not in result.output

    def test_bad_target(self, runner):
        result = runner.invoke(cli, ["routes", "no_colon"])
        assert result.exit_code == 2
        assert "module:attr" in result.output

    def test_missing_module(self, runner):
        result = runner.invoke(cli, ["routes", "does_not_exist_anywhere:app"])
        assert result.exit_code == 2
        assert "Cannot import" in result.output

    def test_missing_attribute(self, runner, in_tests_dir):
        result = runner.invoke(cli, ["routes", "blog:nope"])
        assert result.exit_code == 2
        assert "has no attribute 'nope'" in result.output


class TestServe:
    def test_runs_uvicorn(self, runner, in_tests_dir, monkeypatch):
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

        result = runner.invoke(cli, ["serve", "blog:build_app", "--factory", "--port", "9000"])

        assert result.exit_code == 0, result.output
        app, kwargs = calls[0]
        assert app == "blog:build_app"
        assert kwargs["port"] == 9000
        assert kwargs["factory"] is True
        assert kwargs["host"] == "127.0.0.1"
