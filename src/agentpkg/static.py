"""MCP servers that need no fetch step (external HTTP endpoint, pre-installed command).

The descriptor is the only content. Entries live at
static/<name>/<sha256-of-descriptor>, so two differently configured servers
sharing a name never collide while identical configs share one entry.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass

from .exceptions import SourceFetchError
from .packages import DESCRIPTOR_PERM
from .packages import discard
from .schema import DESCRIPTOR_FILENAME
from .schema import MCPSource
from .schema import ResolvedSource
from .store import Store

logger = logging.getLogger(__name__)


@dataclass
class StaticSource:
    name: str
    config: MCPSource

    def store_segments(self, descriptor: bytes) -> list[str]:
        return ["static", self.name, hashlib.sha256(descriptor).hexdigest()]

    async def fetch(self, store: Store) -> ResolvedSource:
        descriptor = self.config.descriptor_bytes()
        segments = self.store_segments(descriptor)

        if store.exists(*segments):
            logger.debug(f"Cache hit for static source {self.name!r}")
        else:
            staging = store.staging_path(*segments)
            try:
                staging.mkdir()
                (staging / DESCRIPTOR_FILENAME).write_bytes(descriptor)
                (staging / DESCRIPTOR_FILENAME).chmod(DESCRIPTOR_PERM)
            except asyncio.CancelledError:
                discard(staging)
                raise
            except OSError as e:
                discard(staging)
                raise SourceFetchError(
                    f"Failed to write descriptor for {self.name!r}: {e}",
                    context={"name": self.name},
                ) from e
            store.publish(staging, *segments)

        integrity = store.hash_dir(*segments)
        return ResolvedSource(dir=store.path(*segments), integrity=integrity)
