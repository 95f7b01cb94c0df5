"""Local container engine (docker or podman) detection and image queries."""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from . import process
from .config import CONTAINER_ENGINE_ENV
from .config import CONTAINER_ENGINES
from .config import container_engine_override
from .exceptions import SourceFetchError

logger = logging.getLogger(__name__)

DIGEST_PREFIX = "sha256:"


@dataclass(frozen=True)
class ContainerEngine:
    """A container engine binary found on PATH."""

    path: str
    name: str

    async def has_image(self, image: str) -> bool:
        """Check the local image store without touching the network."""
        return await process.succeeds(self.path, "image", "inspect", image)

    async def pull(self, image: str) -> None:
        """Pull the image unless it is already present locally."""
        if await self.has_image(image):
            logger.debug(f"Image {image} already present")
            return
        logger.info(f"Pulling image {image} with {self.name}")
        await process.run(self.path, "pull", image)

    async def image_digest(self, image: str) -> str:
        """Return the image ID of a local image as bare hex."""
        out = await process.run(self.path, "image", "inspect", "--format", "{{.Id}}", image)
        return out.strip().removeprefix(DIGEST_PREFIX)


def detect_engine() -> ContainerEngine:
    """Find a container engine: $APKG_CONTAINER_ENGINE first, then docker, then podman.

    Raises:
        SourceFetchError: If no engine is available
    """
    override = container_engine_override()
    if override:
        path = shutil.which(override)
        if path is None:
            raise SourceFetchError(
                f"{CONTAINER_ENGINE_ENV}={override!r} not found in PATH",
                context={"engine": override},
            )
        return ContainerEngine(path=path, name=Path(override).name)

    for candidate in CONTAINER_ENGINES:
        path = shutil.which(candidate)
        if path is not None:
            return ContainerEngine(path=path, name=candidate)

    raise SourceFetchError(
        f"No container engine found: install {' or '.join(CONTAINER_ENGINES)}, or set {CONTAINER_ENGINE_ENV}"
    )
