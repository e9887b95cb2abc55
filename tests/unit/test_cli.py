"""Tests for the command-line interface."""

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from gitflower.cli import cli


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def _invoke(runner: CliRunner, repos_root: Path, *args: str):
    return runner.invoke(cli, ["--repos", str(repos_root), *args])


@pytest.mark.unit
class TestListCommand:
    """Tests for `gitflower list`."""

    def test_empty(self, runner: CliRunner, repos_root: Path) -> None:
        result = _invoke(runner, repos_root, "list")
        assert result.exit_code == 0
        assert "No repositories found" in result.stdout

    def test_table(self, runner: CliRunner, repos_root: Path, make_bare_repo) -> None:
        make_bare_repo(repos_root, "org/a.git")
        (repos_root / "broken.git").mkdir()

        result = _invoke(runner, repos_root, "list")

        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].split()[:3] == ["PATH", "BRANCHES", "MR"]
        assert lines[1].startswith("broken.git")
        assert "ERROR: not a valid git repository" in lines[1]
        assert lines[2].startswith("org/a.git")
        assert lines[2].rstrip().endswith("OK")

    def test_json(self, runner: CliRunner, repos_root: Path, make_bare_repo) -> None:
        make_bare_repo(repos_root, "org/a.git")

        result = _invoke(runner, repos_root, "list", "--format", "json")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data[0]["relativePath"] == "org/a.git"
        assert data[0]["branchCount"] == 0
        assert data[0]["lastUpdate"] is None

    def test_yaml(self, runner: CliRunner, repos_root: Path, make_bare_repo) -> None:
        make_bare_repo(repos_root, "a.git")

        result = _invoke(runner, repos_root, "list", "-f", "yaml")

        assert result.exit_code == 0
        assert yaml.safe_load(result.stdout)[0]["name"] == "a.git"

    def test_warnings(self, runner: CliRunner, repos_root: Path) -> None:
        (repos_root / "BAD").mkdir()

        result = _invoke(runner, repos_root, "list", "--warnings")

        assert result.exit_code == 0
        assert "Warnings:" in result.stderr
        assert "Invalid directory name:" in result.stderr
        assert "Warnings:" not in result.stdout

    def test_warnings_hidden_by_default(self, runner: CliRunner, repos_root: Path) -> None:
        (repos_root / "BAD").mkdir()
        result = _invoke(runner, repos_root, "list")
        assert "Warnings:" not in result.stderr

    def test_root_is_a_file(self, runner: CliRunner, tmp_path: Path) -> None:
        root = tmp_path / "file"
        root.write_text("x")
        result = _invoke(runner, root, "list")
        assert result.exit_code == 1
        assert "Error:" in result.stderr


@pytest.mark.unit
class TestCreateCommand:
    """Tests for `gitflower create`."""

    def test_create(self, runner: CliRunner, repos_root: Path) -> None:
        result = _invoke(runner, repos_root, "create", "myorg/proj")

        assert result.exit_code == 0
        assert "Created repository: myorg/proj.git" in result.stdout
        assert f"git remote add origin {repos_root / 'myorg' / 'proj.git'}" in result.stdout
        assert "git push -u origin main" in result.stdout
        assert (repos_root / "myorg" / "proj.git" / "HEAD").is_file()

    def test_duplicate(self, runner: CliRunner, repos_root: Path) -> None:
        _invoke(runner, repos_root, "create", "proj.git")
        result = _invoke(runner, repos_root, "create", "proj.git")
        assert result.exit_code == 1
        assert "Error:" in result.stderr
        assert "already exists" in result.stderr

    def test_invalid_name(self, runner: CliRunner, repos_root: Path) -> None:
        result = _invoke(runner, repos_root, "create", "Org/proj.git")
        assert result.exit_code == 1
        assert "Org" in result.stderr
        assert list(repos_root.iterdir()) == []


@pytest.mark.unit
class TestConfigCommand:
    """Tests for `gitflower config`."""

    def test_show_all(self, runner: CliRunner, repos_root: Path) -> None:
        result = _invoke(runner, repos_root, "config")
        assert result.exit_code == 0
        values = yaml.safe_load(result.stdout)
        assert values["repos_directory"] == str(repos_root)
        assert values["default_branch"] == "main"

    def test_single_key(self, runner: CliRunner, repos_root: Path) -> None:
        result = _invoke(runner, repos_root, "config", "repos.directory")
        assert result.exit_code == 0
        assert result.stdout.strip() == str(repos_root)

    def test_unknown_key(self, runner: CliRunner, repos_root: Path) -> None:
        result = _invoke(runner, repos_root, "config", "nope")
        assert result.exit_code == 1
        assert "unknown config key" in result.stderr

    def test_config_file_option(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "gitflower.yaml"
        config_file.write_text("repos:\n  directory: /srv/git\n  default_branch: trunk\n")

        result = runner.invoke(cli, ["--config", str(config_file), "config", "default_branch"])

        assert result.exit_code == 0
        assert result.stdout.strip() == "trunk"

    def test_bad_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "gitflower.yaml"
        config_file.write_text("repos: [\n")

        result = runner.invoke(cli, ["--config", str(config_file), "config"])

        assert result.exit_code == 1
        assert "Error:" in result.stderr

    def test_set_value(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "gitflower.yaml"
        config_file.write_text("web:\n  port: 9000\n")

        result = runner.invoke(
            cli, ["--config", str(config_file), "config", "repos.directory", "/srv/new"]
        )

        assert result.exit_code == 0
        assert result.stdout.strip() == "Set repos_directory = /srv/new"
        assert yaml.safe_load(config_file.read_text()) == {
            "web": {"port": 9000},
            "repos": {"directory": "/srv/new"},
        }

        shown = runner.invoke(cli, ["--config", str(config_file), "config", "repos_directory"])
        assert shown.stdout.strip() == "/srv/new"

    def test_set_value_uses_config_from_environment(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "env-config.yaml"
        monkeypatch.setenv("GITFLOWER_CONFIG", str(config_file))

        result = runner.invoke(cli, ["config", "web.port", "9001"])

        assert result.exit_code == 0
        assert yaml.safe_load(config_file.read_text()) == {"web": {"port": 9001}}

    def test_set_invalid_value(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "gitflower.yaml"

        result = runner.invoke(cli, ["--config", str(config_file), "config", "web_port", "abc"])

        assert result.exit_code == 1
        assert "Error: invalid value for web_port" in result.stderr
        assert not config_file.exists()

    def test_set_key_outside_config_file(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "gitflower.yaml"

        result = runner.invoke(
            cli, ["--config", str(config_file), "config", "environment", "production"]
        )

        assert result.exit_code == 1
        assert "cannot be stored" in result.stderr

    def test_invalid_environment_value(
        self, runner: CliRunner, repos_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITFLOWER_WEB_PORT", "abc")

        result = _invoke(runner, repos_root, "config")

        assert result.exit_code == 1
        assert "Error: invalid configuration: web_port:" in result.stderr
        assert "Traceback" not in result.output


@pytest.mark.unit
class TestWebCommand:
    def test_starts_uvicorn(
        self, runner: CliRunner, repos_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

        result = _invoke(runner, repos_root, "web", "--port", "9999")

        assert result.exit_code == 0
        app, kwargs = calls[0]
        assert kwargs == {"host": "127.0.0.1", "port": 9999}
        assert app.state.settings.repos_directory == str(repos_root)
