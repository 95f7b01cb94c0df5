"""npm-ecosystem packages, cached at npm/<name-parts...>/<version>."""

import json
from pathlib import Path

from . import process
from .exceptions import RefNotFoundError
from .exceptions import SourceFetchError
from .packages import ManagedPackageSource


class NPMSource(ManagedPackageSource):
    """Package installed with ``npm install --prefix`` into the store."""

    ecosystem = "npm"

    def package_name(self) -> str:
        # Index 0 is a scope ("@modelcontextprotocol/inspector"), not a version
        idx = self.package.rfind("@")
        if idx > 0:
            return self.package[:idx]
        return self.package

    async def resolve_version(self) -> str:
        """Ask the registry which version the spec (name or range) selects.

        ``npm view --json`` prints a string for one match and a list for
        several. From a list the first entry is used; that pick is arbitrary
        and not necessarily the highest semver.
        """
        out = await process.run("npm", "view", self.package, "version", "--json")
        # npm exits 0 with no output when the range matches nothing
        if not out.strip():
            raise RefNotFoundError(f"No versions found for {self.package}", context={"package": self.package})

        try:
            parsed = json.loads(out)
        except json.JSONDecodeError as e:
            raise SourceFetchError(
                f"Failed to parse 'npm view {self.package} version --json' output: {e}",
                context={"package": self.package},
            ) from e

        if isinstance(parsed, str) and parsed:
            return parsed

        if isinstance(parsed, list) and all(isinstance(v, str) for v in parsed):
            if not parsed:
                raise RefNotFoundError(f"No versions found for {self.package}", context={"package": self.package})
            return parsed[0]

        raise SourceFetchError(
            f"Unexpected 'npm view {self.package} version --json' output: {out.strip()!r}",
            context={"package": self.package},
        )

    def store_segments(self, version: str) -> list[str]:
        return ["npm", *self.package_name().split("/"), version]

    async def install(self, dest: Path, version: str) -> None:
        await process.run("npm", "install", "--prefix", str(dest), f"{self.package_name()}@{version}")
