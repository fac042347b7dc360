"""
Tests for the CLI — options, pre-flight failures, and full runs.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

import tooldl.main as main_module
from tests.helpers import FakeReleaseClient, MemoryStore, build_zip, damaged_deflated_zip, release
from tooldl.core.errors import AuthenticationError
from tooldl.core.services import updater as updater_module
from tooldl.main import cli


@pytest.fixture
def store(monkeypatch) -> MemoryStore:
    """Credential store shared by every KeyringStore the CLI creates."""
    shared = MemoryStore()
    monkeypatch.setattr(main_module, "KeyringStore", lambda: shared)
    return shared


@pytest.fixture
def client(monkeypatch) -> FakeReleaseClient:
    """Release client the CLI will use, with the token it was given."""
    fake = FakeReleaseClient(
        {"acme/tool": release("v2.0", "tool-x64.zip", "tool-aarch64.zip", "notes.txt")},
        {
            "tool-x64.zip": build_zip({"bin/tool": b"x64"}),
            "tool-aarch64.zip": build_zip({"bin/tool": b"arm"}),
        },
    )

    def factory(token, api_url, timeout):
        fake.token = token
        return fake

    monkeypatch.setattr(main_module, "ReleaseClient", factory)
    return fake


@pytest.fixture(autouse=True)
def scratch(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "scratch"
    monkeypatch.setattr(updater_module, "default_scratch_dir", lambda: path)
    monkeypatch.delenv("TOOLDL_LOG_FILE", raising=False)
    return path


def _registry(root: Path, text: str = "// tools\nacme/tool\n") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "tools.txt").write_text(text, encoding="utf-8")
    return root


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "--user" in result.output
        assert "--token" in result.output
        assert "--path" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_user_required(self):
        result = CliRunner().invoke(cli, [])
        assert result.exit_code != 0
        assert "--user" in result.output


class TestPreflight:
    def test_missing_token(self, tmp_path: Path, store, client):
        root = _registry(tmp_path / "tools")
        result = CliRunner().invoke(cli, ["--user", "alice", "--path", str(root)])
        assert result.exit_code == 1
        assert "No token found" in result.output
        assert "Traceback" not in result.output
        assert client.resolved == []

    def test_token_saved_for_next_run(self, tmp_path: Path, store, client):
        root = _registry(tmp_path / "tools")
        runner = CliRunner()

        first = runner.invoke(cli, ["--user", "alice", "--token", "tok", "--path", str(root)])
        assert first.exit_code == 0, first.output
        assert store.get("tooldl", "alice") == "tok"

        second = runner.invoke(cli, ["--user", "alice", "--path", str(root)])
        assert second.exit_code == 0, second.output
        assert client.token == "tok"

    def test_missing_registry(self, tmp_path: Path, store, client):
        root = tmp_path / "empty"
        root.mkdir()
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 1
        assert "Registry file not found" in result.output
        assert client.resolved == []

    def test_malformed_registry(self, tmp_path: Path, store, client):
        root = _registry(tmp_path / "tools", "acme/tool\nbroken\n")
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 1
        assert "broken" in result.output

    def test_registry_not_utf8(self, tmp_path: Path, store, client):
        root = tmp_path / "tools"
        root.mkdir()
        (root / "tools.txt").write_bytes(b"\xff")
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 1
        assert "✗" in result.output
        assert "UTF-8" in result.output
        assert "Traceback" not in result.output
        assert client.resolved == []

    def test_empty_token_rejected(self, tmp_path: Path, store, client):
        store.set("tooldl", "alice", "saved")
        root = _registry(tmp_path / "tools")
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "", "--path", str(root)])
        assert result.exit_code == 1
        assert "No token found" in result.output
        assert store.get("tooldl", "alice") == "saved"

    def test_invalid_timeout(self, tmp_path: Path, store, client, monkeypatch):
        monkeypatch.setenv("TOOLDL_TIMEOUT", "soon")
        root = _registry(tmp_path / "tools")
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 1
        assert "TOOLDL_TIMEOUT" in result.output


class TestRun:
    def test_install_then_up_to_date(self, tmp_path: Path, store, client):
        root = _registry(tmp_path / "tools")
        runner = CliRunner()

        result = runner.invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 0, result.output
        assert "acme/tool" in result.output
        assert (root / "tool" / "X64" / "bin" / "tool").read_bytes() == b"x64"
        assert (root / "tool" / "ARM64" / "bin" / "tool").read_bytes() == b"arm"
        assert (root / "tool" / "info.txt").read_text() == "v2.0"

        client.downloaded.clear()
        again = runner.invoke(cli, ["--user", "alice", "--path", str(root)])
        assert again.exit_code == 0, again.output
        assert "up to date" in again.output
        assert client.downloaded == []

    def test_default_path_is_cwd(self, tmp_path: Path, store, client, monkeypatch):
        root = _registry(tmp_path / "tools")
        monkeypatch.chdir(root)
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t"])
        assert result.exit_code == 0, result.output
        assert (root / "tool" / "info.txt").exists()

    def test_tool_failure_exits_nonzero(self, tmp_path: Path, store, client):
        client.releases["other/thing"] = AuthenticationError("other/thing", 401)
        root = _registry(tmp_path / "tools", "other/thing\nacme/tool\n")
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 1
        assert "other/thing" in result.output
        assert "1 failed" in result.output
        assert (root / "tool" / "info.txt").exists()

    def test_damaged_archive_reported(self, tmp_path: Path, store, client):
        client.payloads["tool-x64.zip"] = damaged_deflated_zip()
        root = _registry(tmp_path / "tools")
        result = CliRunner().invoke(cli, ["--user", "alice", "--token", "t", "--path", str(root)])
        assert result.exit_code == 1
        assert "Corrupt archive" in result.output
        assert "1 failed" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_json_output(self, tmp_path: Path, store, client):
        root = _registry(tmp_path / "tools")
        result = CliRunner().invoke(
            cli, ["--user", "alice", "--token", "t", "--path", str(root), "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["updated"] == 1
        tool = data["tools"][0]
        assert tool["tool"] == "acme/tool"
        assert tool["state"] == "done"
        assert tool["latest_tag"] == "v2.0"
        assert [a["architecture"] for a in tool["assets"]] == ["X64", "ARM64"]
        assert tool["skipped"] == ["notes.txt"]

    def test_quiet(self, tmp_path: Path, store, client):
        root = _registry(tmp_path / "tools")
        result = CliRunner().invoke(
            cli, ["--user", "alice", "--token", "t", "--path", str(root), "-q"]
        )
        assert result.exit_code == 0
        assert result.output == ""
