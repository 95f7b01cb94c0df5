"""Go modules installed with ``go install``, cached at go/<module-parts...>/<version>."""

import logging
from pathlib import Path

from . import process
from .exceptions import SubprocessError
from .packages import ManagedPackageSource

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "latest"
GO_ENV = {"GOWORK": "off"}


class GoSource(ManagedPackageSource):
    """Module binary installed into the entry's ``bin/`` directory."""

    ecosystem = "go"

    def package_name(self) -> str:
        return self.module_path()

    def module_path(self) -> str:
        idx = self.package.rfind("@")
        if idx > 0:
            return self.package[:idx]
        return self.package

    def version_expr(self) -> str:
        """Version after "@", or "latest" when none is given."""
        idx = self.package.rfind("@")
        if idx > 0:
            return self.package[idx + 1 :]
        return DEFAULT_VERSION

    async def resolve_version(self) -> str:
        """Resolve through the module proxy, falling back to the expression as given.

        ``go list -m`` only works for module roots. For a package path inside
        a module (golang.org/x/tools/cmd/stringer) it fails and the version
        expression is used verbatim; ``go install`` resolves or rejects it.
        """
        expr = self.version_expr()
        try:
            out = await process.run(
                "go", "list", "-m", "-f", "{{.Version}}", f"{self.module_path()}@{expr}", env=GO_ENV
            )
        except SubprocessError as e:
            logger.debug(f"go list -m failed for {self.module_path()}@{expr}, using {expr!r}: {e}")
            return expr

        return out.strip() or expr

    def store_segments(self, version: str) -> list[str]:
        return ["go", *self.module_path().split("/"), version]

    async def install(self, dest: Path, version: str) -> None:
        await process.run(
            "go",
            "install",
            f"{self.module_path()}@{version}",
            env={**GO_ENV, "GOBIN": str(dest / "bin")},
        )
