"""Tests for LockFile with injected lock path."""

import json
import tempfile
from pathlib import Path

from agentpkg import CommandServer
from agentpkg import ContainerServer
from agentpkg import LockFile
from agentpkg import ManagedServer
from agentpkg import MCPLockEntry
from agentpkg import MCPSource
from agentpkg import ResolvedSource
from agentpkg import SkillLockEntry
from agentpkg import SkillSource

SKILLS_URL = "https://github.com/anthropics/skills.git"


def test_lock_with_injected_path():
    """Test lock uses injected path (not hardcoded)."""
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "custom.lock"

        lock = LockFile(lock_path=lock_path)

        assert lock.lock_path == lock_path
        assert not lock_path.exists()  # Not created until first save


def test_upsert_and_get_skill():
    """Test skills are keyed by git URL and sub-path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        lock = LockFile(lock_path=Path(tmpdir) / "apkg.lock")

        lock.upsert_skill(
            SkillLockEntry(git=SKILLS_URL, path="skills/pdf", ref="main", commit="a" * 40, integrity="sha256:00")
        )
        lock.upsert_skill(SkillLockEntry(git=SKILLS_URL, path="skills/xlsx", ref="main", commit="b" * 40))

        entry = lock.get_skill(SKILLS_URL, "skills/pdf")
        assert entry is not None
        assert entry.commit == "a" * 40
        assert lock.get_skill(SKILLS_URL, "skills/xlsx").commit == "b" * 40
        assert lock.get_skill(SKILLS_URL, None) is None
        assert len(lock.skills) == 2


def test_upsert_replaces_same_key():
    with tempfile.TemporaryDirectory() as tmpdir:
        lock = LockFile(lock_path=Path(tmpdir) / "apkg.lock")

        lock.upsert_skill(SkillLockEntry(git=SKILLS_URL, path="skills/pdf", ref="main", commit="a" * 40))
        lock.upsert_skill(SkillLockEntry(git=SKILLS_URL, path="skills/pdf", ref="v2", commit="c" * 40))

        assert len(lock.skills) == 1
        assert lock.get_skill(SKILLS_URL, "skills/pdf").ref == "v2"


def test_local_skill_keyed_by_path():
    with tempfile.TemporaryDirectory() as tmpdir:
        lock = LockFile(lock_path=Path(tmpdir) / "apkg.lock")

        lock.upsert_skill(SkillLockEntry(path="./skills/mine"))

        assert lock.get_skill(None, "./skills/mine") is not None
        assert lock.skills[0].key == "./skills/mine"


def test_remove_entries():
    """Test removing skill and MCP server entries."""
    with tempfile.TemporaryDirectory() as tmpdir:
        lock = LockFile(lock_path=Path(tmpdir) / "apkg.lock")
        lock.upsert_skill(SkillLockEntry(git=SKILLS_URL, path="skills/pdf", ref="main", commit="a" * 40))
        lock.upsert_mcp_server(MCPLockEntry(name="git", transport="stdio", package="uv:mcp-server-git"))

        lock.remove_skill(SKILLS_URL, "skills/pdf")
        lock.remove_mcp_server("git")
        lock.remove_mcp_server("never-added")

        assert lock.get_skill(SKILLS_URL, "skills/pdf") is None
        assert lock.get_mcp_server("git") is None


def test_persistence():
    """Test lock persists across instances."""
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "apkg.lock"

        lock1 = LockFile(lock_path=lock_path)
        lock1.upsert_skill(SkillLockEntry(git=SKILLS_URL, path="skills/pdf", ref="v1.0", commit="a" * 40))
        lock1.upsert_mcp_server(
            MCPLockEntry(name="github", transport="http", image="ghcr.io/org/server:1", port=8080, env_keys=["TOKEN"])
        )

        lock2 = LockFile(lock_path=lock_path)

        assert lock2.get_skill(SKILLS_URL, "skills/pdf").ref == "v1.0"
        server = lock2.get_mcp_server("github")
        assert server.port == 8080
        assert server.env_keys == ["TOKEN"]


def test_saved_format_omits_empty_fields():
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "apkg.lock"
        lock = LockFile(lock_path=lock_path)

        lock.upsert_mcp_server(MCPLockEntry(name="echo", transport="stdio", command="/usr/bin/echo"))

        data = json.loads(lock_path.read_text())
        assert data["version"] == LockFile.VERSION
        assert data["skills"] == []
        assert data["mcpServers"] == [{"name": "echo", "transport": "stdio", "command": "/usr/bin/echo"}]
        assert not (Path(tmpdir) / "apkg.lock.tmp").exists()


def test_corrupt_lock_file_loads_empty():
    """Test an unreadable lock file is treated as empty rather than fatal."""
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "apkg.lock"
        lock_path.write_text("{not json")

        lock = LockFile(lock_path=lock_path)

        assert lock.skills == []
        assert lock.mcp_servers == []


def test_replace_drops_stale_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        lock_path = Path(tmpdir) / "apkg.lock"
        lock = LockFile(lock_path=lock_path)
        lock.upsert_skill(SkillLockEntry(git=SKILLS_URL, path="skills/old", ref="main", commit="a" * 40))

        lock.replace([SkillLockEntry(path="./mine")], [])

        assert [entry.key for entry in LockFile(lock_path=lock_path).skills] == ["./mine"]


def test_skill_entry_records_configured_ref():
    """Test the configured ref is recorded even when a commit was fetched."""
    config = SkillSource(git=SKILLS_URL, path="skills/pdf", ref="main")
    resolved = ResolvedSource(dir=Path("/store/x"), commit="a" * 40, ref="a" * 40, integrity="sha256:11")

    entry = SkillLockEntry.from_resolved(config, resolved)

    assert entry.ref == "main"
    assert entry.commit == "a" * 40
    assert entry.integrity == "sha256:11"


def test_mcp_entry_records_keys_not_values():
    """Test env and header values never reach the lock file."""
    config = MCPSource(
        transport="stdio",
        server=ManagedServer(package="npm:@scope/server@1"),
        args=["--verbose"],
        env={"ZETA": "secret", "ALPHA": "secret"},
    )
    resolved = ResolvedSource(dir=Path("/store/npm/@scope/server/1.0.0"), integrity="sha256:22")

    entry = MCPLockEntry.from_resolved("server", config, resolved)

    assert entry.package == "npm:@scope/server@1"
    assert entry.env_keys == ["ALPHA", "ZETA"]
    assert entry.install_path == "/store/npm/@scope/server/1.0.0"
    assert "secret" not in json.dumps(entry.to_dict())


def test_mcp_entry_per_origin_fields():
    resolved = ResolvedSource(dir=Path("/store/y"), integrity="sha256:33")

    command = MCPLockEntry.from_resolved(
        "echo", MCPSource(transport="stdio", server=CommandServer(command="/usr/bin/echo")), resolved
    )
    container = MCPLockEntry.from_resolved(
        "gh", MCPSource(transport="http", server=ContainerServer(image="ghcr.io/o/s:1", port=3000)), resolved
    )

    assert command.command == "/usr/bin/echo"
    assert command.image is None
    assert container.image == "ghcr.io/o/s:1"
    assert container.port == 3000
