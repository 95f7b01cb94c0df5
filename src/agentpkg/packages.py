"""Shared fetch flow for managed packages (npm, uv, go).

Resolve the package spec to a concrete version, derive segments from
(identity, version), install only on a cache miss, then rewrite the mcp.toml
descriptor on every fetch so env/args edits apply without reinstalling.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import ClassVar

from .exceptions import SourceError
from .exceptions import SourceFetchError
from .schema import DESCRIPTOR_FILENAME
from .schema import MCPSource
from .schema import ResolvedSource
from .store import Store

logger = logging.getLogger(__name__)

DESCRIPTOR_PERM = 0o644


def write_descriptor(store: Store, segments: list[str], config: MCPSource) -> None:
    """Write config as mcp.toml inside the entry at segments."""
    store.write_file(config.descriptor_bytes(), DESCRIPTOR_PERM, *segments, DESCRIPTOR_FILENAME)


def discard(staging: Path) -> None:
    """Remove a staging directory left by a failed or cancelled build."""
    shutil.rmtree(staging, ignore_errors=True)


class ManagedPackageSource:
    """Base for package-ecosystem sources.

    Subclasses set ``ecosystem`` and implement package_name(),
    resolve_version(), store_segments() and install().
    """

    ecosystem: ClassVar[str] = ""

    def __init__(self, package: str, config: MCPSource):
        """Initialize with the ecosystem spec (prefix already stripped) and config.

        Args:
            package: Package spec, e.g. "@scope/name@1.2.0" or "name==1.0"
            config: MCP server config written as the descriptor
        """
        self.package = package
        self.config = config

    def __repr__(self) -> str:
        return f"{type(self).__name__}(package={self.package!r})"

    def package_name(self) -> str:
        raise NotImplementedError

    async def resolve_version(self) -> str:
        raise NotImplementedError

    def store_segments(self, version: str) -> list[str]:
        raise NotImplementedError

    async def install(self, dest: Path, version: str) -> None:
        raise NotImplementedError

    async def fetch(self, store: Store) -> ResolvedSource:
        name = self.package_name()
        try:
            version = await self.resolve_version()
        except SourceError:
            raise
        except Exception as e:
            raise SourceFetchError(
                f"Failed to resolve version for {self.ecosystem} package {self.package}: {e}",
                context={"ecosystem": self.ecosystem, "package": self.package},
            ) from e
        logger.debug(f"Resolved {self.ecosystem} package {self.package} to {version}")

        segments = self.store_segments(version)

        if store.exists(*segments):
            logger.debug(f"Cache hit for {self.ecosystem} package {name}@{version}")
        else:
            await self._install_entry(store, segments, name, version)

        # Rewritten on cache hits too, so config edits take effect
        try:
            write_descriptor(store, segments, self.config)
        except OSError as e:
            raise SourceFetchError(
                f"Failed to write {DESCRIPTOR_FILENAME} for {self.ecosystem} package {name}@{version}: {e}",
                context={"path": str(store.path(*segments))},
            ) from e

        integrity = store.hash_dir(*segments)
        return ResolvedSource(dir=store.path(*segments), integrity=integrity)

    async def _install_entry(self, store: Store, segments: list[str], name: str, version: str) -> None:
        staging = store.staging_path(*segments)
        staging.mkdir()
        logger.info(f"Installing {self.ecosystem} package {name}@{version}")
        try:
            await self.install(staging, version)
            write_descriptor(store, [*segments[:-1], staging.name], self.config)
        except asyncio.CancelledError:
            discard(staging)
            raise
        except Exception as e:
            discard(staging)
            raise SourceFetchError(
                f"Failed to install {self.ecosystem} package {name}@{version}: {e}",
                context={"ecosystem": self.ecosystem, "package": name, "version": version},
            ) from e

        store.publish(staging, *segments)
