"""Source resolver - fetch manifest entries, short-circuiting through the lock file.

For a git skill whose configured ref is unchanged since the lock file was
written, the locked commit is fetched instead of the ref. A full commit needs
no ``git ls-remote`` and the store already holds the checkout, so the whole
fetch stays local.

Per KERNEL_PHILOSOPHY: store and lock file are injected by the app.
"""

import logging

from .exceptions import SourceError
from .exceptions import SourceFetchError
from .lock import LockFile
from .lock import MCPLockEntry
from .lock import SkillLockEntry
from .lock import lock_key
from .reference import source_from_mcp_config
from .reference import source_from_skill_config
from .schema import MCPSource
from .schema import ResolvedSource
from .schema import SkillSource
from .store import Store

logger = logging.getLogger(__name__)


class SourceResolver:
    """
    Resolve skills and MCP servers into the store (with injected store and lock).

    The lock file is snapshotted at construction, so entries written while
    resolving never feed back into the same run.
    """

    def __init__(self, store: Store, lock: LockFile | None = None):
        """Initialize resolver with app-provided store and optional lock file.

        Args:
            store: Content-addressable store to fetch into
            lock: Previous lock file; its entries enable the short-circuit

        Example:
            >>> resolver = SourceResolver(Store.default(), LockFile(Path("apkg.lock")))
        """
        self.store = store
        self.lock = lock
        self._locked: dict[str, SkillLockEntry] = {}
        if lock is not None:
            self._locked = {entry.key: entry for entry in lock.skills}

    def reconcile(self, config: SkillSource) -> SkillSource:
        """Return the config to fetch: the locked commit if the ref is unchanged, else config."""
        if not config.git:
            return config

        entry = self._locked.get(lock_key(config.git, config.path))
        if entry is None or not entry.commit or entry.ref != config.ref:
            return config

        logger.debug(f"Using locked commit {entry.commit} for {config.git}@{config.ref}")
        return config.model_copy(update={"ref": entry.commit})

    async def resolve_skill(self, name: str, config: SkillSource) -> tuple[ResolvedSource, SkillLockEntry]:
        """
        Fetch a skill and build its new lock entry.

        Raises:
            SourceError: If fetching fails (the skill name is added to its context)
        """
        source = source_from_skill_config(self.reconcile(config))
        try:
            resolved = await source.fetch(self.store)
        except SourceError as e:
            e.context.setdefault("skill", name)
            raise
        except Exception as e:
            raise SourceFetchError(f"Fetching skill {name!r}: {e}", context={"skill": name}) from e

        return resolved, SkillLockEntry.from_resolved(config, resolved)

    async def resolve_mcp_server(self, name: str, config: MCPSource) -> tuple[ResolvedSource, MCPLockEntry]:
        """
        Fetch an MCP server and build its new lock entry.

        Raises:
            SourceError: If the config is unsupported or fetching fails
        """
        source = source_from_mcp_config(name, config)
        try:
            resolved = await source.fetch(self.store)
        except SourceError as e:
            e.context.setdefault("server", name)
            raise
        except Exception as e:
            raise SourceFetchError(f"Fetching MCP server {name!r}: {e}", context={"server": name}) from e

        return resolved, MCPLockEntry.from_resolved(name, config, resolved)

    async def resolve_all(
        self,
        skills: dict[str, SkillSource],
        mcp_servers: dict[str, MCPSource],
    ) -> dict[str, ResolvedSource]:
        """
        Resolve every manifest entry and replace the lock file contents.

        Skills resolve in sorted-name order, then MCP servers. The lock file
        is only written once everything resolved.

        Returns:
            Resolved sources keyed by "skills/<name>" and "mcpServers/<name>"
        """
        resolved: dict[str, ResolvedSource] = {}
        skill_entries: list[SkillLockEntry] = []
        server_entries: list[MCPLockEntry] = []

        for name in sorted(skills):
            result, entry = await self.resolve_skill(name, skills[name])
            resolved[f"skills/{name}"] = result
            skill_entries.append(entry)

        for name in sorted(mcp_servers):
            result, entry = await self.resolve_mcp_server(name, mcp_servers[name])
            resolved[f"mcpServers/{name}"] = result
            server_entries.append(entry)

        if self.lock is not None:
            self.lock.replace(skill_entries, server_entries)
            logger.info(f"Locked {len(skill_entries)} skills and {len(server_entries)} MCP servers")

        return resolved
