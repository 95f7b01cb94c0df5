"""Local directories, used in place and never cached."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .exceptions import LocalPathError
from .schema import ResolvedSource
from .store import Store

logger = logging.getLogger(__name__)


@dataclass
class LocalSource:
    """Directory owned by the caller's filesystem.

    No integrity is recorded: the content may be edited at any time.
    """

    path: str

    async def fetch(self, store: Store) -> ResolvedSource:
        abs_path = Path(os.path.abspath(Path(self.path).expanduser()))

        try:
            is_dir = abs_path.is_dir()
            exists = is_dir or abs_path.exists()
        except OSError as e:
            raise LocalPathError(
                f"Checking local source path {abs_path} failed: {e}", context={"path": str(abs_path)}
            ) from e

        if not exists:
            raise LocalPathError(f"Local source path does not exist: {abs_path}", context={"path": str(abs_path)})
        if not is_dir:
            raise LocalPathError(f"Local source path is not a directory: {abs_path}", context={"path": str(abs_path)})

        logger.debug(f"Using local source {abs_path}")
        return ResolvedSource(dir=abs_path)
