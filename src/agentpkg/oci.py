"""Container-image MCP servers, cached at oci/<name>/<digest>.

The entry holds only the mcp.toml descriptor. The image itself lives in the
container engine's store; the digest pins which image the descriptor refers to.
"""

import logging
from dataclasses import dataclass

from . import container
from .exceptions import SourceError
from .exceptions import SourceFetchError
from .exceptions import UnsupportedConfigError
from .packages import write_descriptor
from .schema import ContainerServer
from .schema import MCPSource
from .schema import ResolvedSource
from .store import Store

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_PATH = "/mcp"


@dataclass
class OCISource:
    """Image pulled through the local container engine.

    fetch() stamps the resolved digest (and a default route path) into
    ``config`` so downstream consumers can build stable routing identifiers.
    """

    name: str
    config: MCPSource

    async def fetch(self, store: Store) -> ResolvedSource:
        server = self.config.server
        if not isinstance(server, ContainerServer):
            raise UnsupportedConfigError(
                f"MCP server {self.name!r} is not a container image", context={"name": self.name}
            )

        engine = container.detect_engine()

        try:
            await engine.pull(server.image)
            digest = await engine.image_digest(server.image)
        except SourceError as e:
            raise SourceFetchError(
                f"Failed to resolve image {server.image} for {self.name!r}: {e}",
                context={"name": self.name, "image": server.image},
            ) from e
        logger.debug(f"Image {server.image} resolved to {digest}")

        server.digest = digest
        if not server.path:
            server.path = DEFAULT_ROUTE_PATH

        segments = ["oci", self.name, digest]
        store.ensure_dir(*segments)

        # Rewritten on every fetch, so config edits take effect
        try:
            write_descriptor(store, segments, self.config)
        except OSError as e:
            raise SourceFetchError(
                f"Failed to write descriptor for {self.name!r}: {e}",
                context={"path": str(store.path(*segments))},
            ) from e

        integrity = store.hash_dir(*segments)
        return ResolvedSource(dir=store.path(*segments), integrity=integrity)
