"""Tests for StaticSource and LocalSource."""

import hashlib

import pytest
from agentpkg import CommandServer
from agentpkg import ExternalServer
from agentpkg import LocalPathError
from agentpkg import LocalSource
from agentpkg import MCPSource
from agentpkg import StaticSource
from agentpkg import load_descriptor


def command_config(command: str, **kwargs) -> MCPSource:
    return MCPSource(transport="stdio", name="my-server", server=CommandServer(command=command), **kwargs)


class TestStaticSource:
    @pytest.mark.asyncio
    async def test_entry_keyed_by_descriptor_hash(self, store):
        """Test the entry lives at static/<name>/<sha256 of the descriptor>."""
        config = command_config("/usr/bin/echo", args=["hello"])

        resolved = await StaticSource(name="my-server", config=config).fetch(store)

        expected = hashlib.sha256(config.descriptor_bytes()).hexdigest()
        assert resolved.dir == store.path("static", "my-server", expected)
        assert store.read_file("static", "my-server", expected, "mcp.toml") == config.descriptor_bytes()
        assert resolved.integrity.startswith("sha256:")

    @pytest.mark.asyncio
    async def test_different_configs_do_not_collide(self, store):
        first = await StaticSource(name="my-server", config=command_config("/usr/bin/echo")).fetch(store)
        second = await StaticSource(name="my-server", config=command_config("/usr/local/bin/other")).fetch(store)

        assert first.dir != second.dir
        assert load_descriptor(first.dir).server.command == "/usr/bin/echo"
        assert load_descriptor(second.dir).server.command == "/usr/local/bin/other"

    @pytest.mark.asyncio
    async def test_identical_configs_share_entry(self, store):
        first = await StaticSource(name="my-server", config=command_config("/usr/bin/echo")).fetch(store)
        second = await StaticSource(name="my-server", config=command_config("/usr/bin/echo")).fetch(store)

        assert first == second

    @pytest.mark.asyncio
    async def test_env_order_does_not_change_entry(self, store):
        first = await StaticSource(name="s", config=command_config("run", env={"A": "1", "B": "2"})).fetch(store)
        second = await StaticSource(name="s", config=command_config("run", env={"B": "2", "A": "1"})).fetch(store)

        assert first.dir == second.dir

    @pytest.mark.asyncio
    async def test_external_http(self, store):
        config = MCPSource(
            transport="http",
            name="remote",
            server=ExternalServer(url="https://example.com/mcp"),
            headers={"Authorization": "Bearer token"},
        )

        resolved = await StaticSource(name="remote", config=config).fetch(store)

        descriptor = load_descriptor(resolved.dir)
        assert descriptor.server.url == "https://example.com/mcp"
        assert descriptor.headers == {"Authorization": "Bearer token"}


class TestLocalSource:
    @pytest.mark.asyncio
    async def test_existing_directory(self, tmp_path, store):
        skill_dir = tmp_path / "skills" / "pdf"
        skill_dir.mkdir(parents=True)

        resolved = await LocalSource(path=str(skill_dir)).fetch(store)

        assert resolved.dir == skill_dir
        assert resolved.integrity is None
        assert resolved.commit is None
        assert not store.root.exists()

    @pytest.mark.asyncio
    async def test_relative_path_made_absolute(self, tmp_path, store, monkeypatch):
        (tmp_path / "local" / "skill").mkdir(parents=True)
        monkeypatch.chdir(tmp_path)

        resolved = await LocalSource(path="./local/skill").fetch(store)

        assert resolved.dir.is_absolute()
        assert resolved.dir == tmp_path / "local" / "skill"

    @pytest.mark.asyncio
    async def test_missing_path(self, tmp_path, store):
        with pytest.raises(LocalPathError, match="does not exist"):
            await LocalSource(path=str(tmp_path / "missing")).fetch(store)

    @pytest.mark.asyncio
    async def test_file_is_rejected(self, tmp_path, store):
        (tmp_path / "file.md").write_text("x")

        with pytest.raises(LocalPathError, match="not a directory"):
            await LocalSource(path=str(tmp_path / "file.md")).fetch(store)
