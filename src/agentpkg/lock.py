"""Lock file management.

Records what each manifest entry resolved to (commit, integrity, install
path) so the next run can skip network resolution for unchanged refs.

Per KERNEL_PHILOSOPHY: the app injects the lock path (policy).
Per IMPLEMENTATION_PHILOSOPHY: simple JSON file, only the fields needed.
"""

import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from .schema import CommandServer
from .schema import ContainerServer
from .schema import ExternalServer
from .schema import ManagedServer
from .schema import MCPSource
from .schema import ResolvedSource
from .schema import SkillSource

logger = logging.getLogger(__name__)


def lock_key(git: str | None, path: str | None) -> str:
    """Identity of a skill entry: "git|path" for git sources, the path for local ones."""
    if git:
        return f"{git}|{path or ''}"
    return path or ""


@dataclass
class SkillLockEntry:
    """Resolved state of one skill."""

    git: str | None = None
    path: str | None = None
    ref: str | None = None
    commit: str | None = None
    integrity: str | None = None

    @property
    def key(self) -> str:
        return lock_key(self.git, self.path)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict) -> "SkillLockEntry":
        """Create from dictionary."""
        return cls(**data)

    @classmethod
    def from_resolved(cls, config: SkillSource, resolved: ResolvedSource) -> "SkillLockEntry":
        """Build the entry for a fetched skill.

        The configured ref is recorded, not the commit it was substituted
        with, so an unchanged ref keeps short-circuiting on later runs.
        """
        return cls(
            git=config.git,
            path=config.path,
            ref=config.ref,
            commit=resolved.commit,
            integrity=resolved.integrity,
        )


@dataclass
class MCPLockEntry:
    """Resolved state of one MCP server. Env and header values are never recorded."""

    name: str
    transport: str
    integrity: str | None = None
    install_path: str | None = None
    package: str | None = None
    command: str | None = None
    args: list[str] = field(default_factory=list)
    image: str | None = None
    port: int | None = None
    url: str | None = None
    env_keys: list[str] = field(default_factory=list)
    header_keys: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {k: v for k, v in asdict(self).items() if v not in (None, [])}

    @classmethod
    def from_dict(cls, data: dict) -> "MCPLockEntry":
        """Create from dictionary."""
        return cls(**data)

    @classmethod
    def from_resolved(cls, name: str, config: MCPSource, resolved: ResolvedSource) -> "MCPLockEntry":
        entry = cls(
            name=name,
            transport=config.transport,
            integrity=resolved.integrity,
            install_path=str(resolved.dir),
            args=list(config.args),
            env_keys=sorted(config.env),
            header_keys=sorted(config.headers),
        )
        server = config.server
        if isinstance(server, ManagedServer):
            entry.package = server.package
        elif isinstance(server, CommandServer):
            entry.command = server.command
        elif isinstance(server, ContainerServer):
            entry.image = server.image
            entry.port = server.port
        elif isinstance(server, ExternalServer):
            entry.url = server.url
        return entry


class LockFile:
    """
    Lock file manager (with injected lock path).

    Lock format (JSON):
    {
      "version": 1,
      "skills": [
        {
          "git": "https://github.com/anthropics/skills.git",
          "path": "skills/pdf",
          "ref": "main",
          "commit": "0123abcd...",
          "integrity": "sha256:..."
        }
      ],
      "mcpServers": [
        {"name": "git", "transport": "stdio", "package": "uv:mcp-server-git", ...}
      ]
    }
    """

    VERSION = 1

    def __init__(self, lock_path: Path):
        """Initialize lock manager with app-provided lock path.

        Args:
            lock_path: Path to lock file (app determines location)

        Example:
            >>> lock = LockFile(lock_path=Path.cwd() / "apkg.lock")
        """
        self.lock_path = lock_path
        self._skills: dict[str, SkillLockEntry] = {}
        self._mcp_servers: dict[str, MCPLockEntry] = {}
        self._load()

    def _load(self) -> None:
        """Load lock file if it exists."""
        if not self.lock_path.exists():
            return

        try:
            with open(self.lock_path) as f:
                data = json.load(f)

            if data.get("version") != self.VERSION:
                logger.warning(f"Lock file version mismatch: expected {self.VERSION}, got {data.get('version')}")

            skills = [SkillLockEntry.from_dict(entry) for entry in data.get("skills", [])]
            servers = [MCPLockEntry.from_dict(entry) for entry in data.get("mcpServers", [])]
        except Exception as e:
            logger.error(f"Failed to load lock file {self.lock_path}: {e}")
            return

        self._skills = {entry.key: entry for entry in skills}
        self._mcp_servers = {entry.name: entry for entry in servers}
        logger.debug(f"Loaded {len(self._skills)} skills and {len(self._mcp_servers)} MCP servers from lock file")

    def save(self) -> None:
        """Write the lock file, replacing it atomically."""
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": self.VERSION,
            "skills": [entry.to_dict() for entry in self._skills.values()],
            "mcpServers": [entry.to_dict() for entry in self._mcp_servers.values()],
        }

        tmp_path = self.lock_path.with_name(self.lock_path.name + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        tmp_path.replace(self.lock_path)
        logger.debug(f"Saved lock file with {len(self._skills)} skills and {len(self._mcp_servers)} MCP servers")

    def get_skill(self, git: str | None, path: str | None) -> SkillLockEntry | None:
        """Get the entry for a skill by git URL and sub-path (or local path)."""
        return self._skills.get(lock_key(git, path))

    def get_mcp_server(self, name: str) -> MCPLockEntry | None:
        return self._mcp_servers.get(name)

    def upsert_skill(self, entry: SkillLockEntry) -> None:
        """Add or replace a skill entry, matching on git URL and path."""
        self._skills[entry.key] = entry
        self.save()

    def upsert_mcp_server(self, entry: MCPLockEntry) -> None:
        """Add or replace an MCP server entry, matching on name."""
        self._mcp_servers[entry.name] = entry
        self.save()

    def remove_skill(self, git: str | None, path: str | None) -> None:
        if self._skills.pop(lock_key(git, path), None) is not None:
            self.save()

    def remove_mcp_server(self, name: str) -> None:
        if self._mcp_servers.pop(name, None) is not None:
            self.save()

    def replace(self, skills: list[SkillLockEntry], mcp_servers: list[MCPLockEntry]) -> None:
        """Replace all entries with a freshly resolved set and save."""
        self._skills = {entry.key: entry for entry in skills}
        self._mcp_servers = {entry.name: entry for entry in mcp_servers}
        self.save()

    @property
    def skills(self) -> list[SkillLockEntry]:
        return list(self._skills.values())

    @property
    def mcp_servers(self) -> list[MCPLockEntry]:
        return list(self._mcp_servers.values())
