"""PyPI packages installed with uv, cached at uv/<name>/<version>.

Each entry holds its own virtual environment at ``.venv``.
"""

import logging
from pathlib import Path

import httpx

from . import process
from .config import pypi_json_url
from .exceptions import RefNotFoundError
from .exceptions import SourceFetchError
from .packages import ManagedPackageSource

logger = logging.getLogger(__name__)

PIN_MARKER = "=="
VENV_DIRNAME = ".venv"
PYPI_TIMEOUT = 30.0


class UVSource(ManagedPackageSource):
    """Package installed into an isolated venv with ``uv pip install``."""

    ecosystem = "uv"

    def package_name(self) -> str:
        name, _, _ = self.package.partition(PIN_MARKER)
        return name

    def pinned_version(self) -> str | None:
        _, sep, version = self.package.partition(PIN_MARKER)
        return version if sep else None

    async def resolve_version(self) -> str:
        """Use the pinned version, else ask PyPI for the current release."""
        pinned = self.pinned_version()
        if pinned:
            return pinned

        name = self.package_name()
        url = pypi_json_url(name)
        logger.debug(f"Querying {url}")

        async with httpx.AsyncClient(timeout=PYPI_TIMEOUT) as client:
            try:
                response = await client.get(url)
            except httpx.HTTPError as e:
                raise SourceFetchError(f"Querying PyPI for {name} failed: {e}", context={"url": url}) from e

        if response.status_code != 200:
            raise SourceFetchError(
                f"PyPI returned status {response.status_code} for {name}",
                context={"url": url, "status": response.status_code},
            )

        try:
            version = response.json().get("info", {}).get("version")
        except ValueError as e:
            raise SourceFetchError(f"Decoding PyPI response for {name} failed: {e}", context={"url": url}) from e

        if not version:
            raise RefNotFoundError(f"No version found for {name} on PyPI", context={"url": url})

        return version

    def store_segments(self, version: str) -> list[str]:
        return ["uv", self.package_name(), version]

    async def install(self, dest: Path, version: str) -> None:
        venv = dest / VENV_DIRNAME
        # Relocatable: the entry is built in a staging dir and renamed into place
        await process.run("uv", "venv", "--relocatable", str(venv))
        await process.run(
            "uv",
            "pip",
            "install",
            "--python",
            str(venv / "bin" / "python"),
            f"{self.package_name()}=={version}",
        )
