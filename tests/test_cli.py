"""
Tests for ghfetch.cli
"""
import json

import pytest
from click.testing import CliRunner

from ghfetch import cli
from ghfetch.exceptions import ConfigParseError, TransferError
from ghfetch.models import NotFound, Redirect, Versions
from tests.fakes import HASH_A


@pytest.fixture
def runner():
    return CliRunner()


class TestLoadConfig:
    def test_toml_section(self, tmp_path):
        path = tmp_path / "ghfetch.toml"
        path.write_text('[github]\nusername = "me"\ntimeout = 30\n')
        assert cli.load_config(str(path)) == {"username": "me", "timeout": 30}

    def test_json(self, tmp_path):
        path = tmp_path / "ghfetch.json"
        path.write_text('{"tmp_dir": "/tmp/ghfetch"}')
        assert cli.load_config(str(path)) == {"tmp_dir": "/tmp/ghfetch"}

    def test_yaml(self, tmp_path):
        path = tmp_path / "ghfetch.yaml"
        path.write_text("username: me\npassword: token\n")
        assert cli.load_config(str(path)) == {"username": "me", "password": "token"}

    def test_unknown_suffix(self, tmp_path):
        path = tmp_path / "ghfetch.ini"
        path.write_text("[github]\n")
        with pytest.raises(ConfigParseError):
            cli.load_config(str(path))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "ghfetch.json"
        path.write_text("{")
        with pytest.raises(ConfigParseError):
            cli.load_config(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigParseError):
            cli.load_config(str(tmp_path / "missing.toml"))


def test_build_config_overrides_file(tmp_path):
    path = tmp_path / "ghfetch.toml"
    path.write_text('username = "file-user"\ntimeout = 30\n')

    config = cli.build_config(str(path), {"username": "cli-user", "timeout": None})

    assert config.username == "cli-user"
    assert config.timeout == 30.0


def test_lookup_prints_versions(runner, monkeypatch):
    async def fake_lookup(config, repo):
        return Versions({"v1.0": HASH_A})

    monkeypatch.setattr(cli, "_lookup", fake_lookup)
    result = runner.invoke(cli.main, ["lookup", "owner/repo"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"versions": {"v1.0": HASH_A}}


def test_lookup_prints_redirect(runner, monkeypatch):
    async def fake_lookup(config, repo):
        return Redirect(["newowner", "newrepo"])

    monkeypatch.setattr(cli, "_lookup", fake_lookup)
    result = runner.invoke(cli.main, ["lookup", "owner/repo"])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == {"redirect": "newowner/newrepo"}


def test_lookup_not_found_exit_code(runner, monkeypatch):
    async def fake_lookup(config, repo):
        return NotFound()

    monkeypatch.setattr(cli, "_lookup", fake_lookup)
    result = runner.invoke(cli.main, ["lookup", "owner/missing"])

    assert result.exit_code == cli.EXIT_NOT_FOUND


def test_download_parses_name(runner, monkeypatch, tmp_path):
    calls = []

    async def fake_download(config, repo, version, hash, target):
        calls.append((repo, version, hash, target))

    monkeypatch.setattr(cli, "_download", fake_download)
    target = str(tmp_path / "out")
    result = runner.invoke(
        cli.main,
        ["download", "owner/repo/lib", "v1.0", target, "--hash", HASH_A],
    )

    assert result.exit_code == 0
    assert calls == [("owner/repo", "v1.0", HASH_A, target)]


def test_errors_become_click_exceptions(runner, monkeypatch):
    async def fake_package_config(config, repo, version, hash):
        raise TransferError("boom", context={"status_code": 500})

    monkeypatch.setattr(cli, "_package_config", fake_package_config)
    result = runner.invoke(cli.main, ["package-config", "owner/repo", HASH_A])

    assert result.exit_code == 1
    assert "[E300] boom" in result.stderr


def test_credentials_from_environment(runner, monkeypatch):
    seen = []

    async def fake_lookup(config, repo):
        seen.append(config)
        return Versions({})

    monkeypatch.setattr(cli, "_lookup", fake_lookup)
    result = runner.invoke(
        cli.main,
        ["lookup", "owner/repo"],
        env={"GHFETCH_USERNAME": "me", "GHFETCH_PASSWORD": "token"},
    )

    assert result.exit_code == 0
    assert seen[0].username == "me"
    assert seen[0].password == "token"


def test_invalid_config_rejected(runner, tmp_path):
    path = tmp_path / "ghfetch.toml"
    path.write_text('password = "orphan"\n')

    result = runner.invoke(cli.main, ["--config", str(path), "lookup", "owner/repo"])

    assert result.exit_code == 1
    assert "E102" in result.stderr
