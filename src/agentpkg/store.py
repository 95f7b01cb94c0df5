"""Content-addressable store.

A root directory plus path helpers. Sources choose the segments; the store
knows nothing about source types.

New entries are built in a staging directory next to their final location and
published with a single rename, so a concurrent reader never sees a half
written entry. Losing a publish race is not an error: the entry key encodes
the content identity, so the winner's bytes are the same.
"""

import errno
import hashlib
import logging
import os
import shutil
import uuid
from pathlib import Path

from .config import default_store_root
from .exceptions import IntegrityComputeError
from .exceptions import SourceFetchError

logger = logging.getLogger(__name__)

DIR_PERM = 0o755
HASH_PREFIX = "sha256:"


class Store:
    """Store rooted at an app-provided directory.

    Example:
        >>> store = Store(Path.home() / ".apkg")
        >>> store.path("repos", "github.com", "anthropics", "skills", commit)
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    @classmethod
    def default(cls) -> "Store":
        """Store at $APKG_HOME or ~/.apkg."""
        return cls(default_store_root())

    def path(self, *segments: str) -> Path:
        """Join segments under the root. No I/O."""
        return self.root.joinpath(*segments)

    def exists(self, *segments: str) -> bool:
        """Report whether the path exists.

        Raises:
            OSError: For failures other than "not found" (e.g. permission denied)
        """
        try:
            os.stat(self.path(*segments))
        except FileNotFoundError:
            return False
        return True

    def ensure_dir(self, *segments: str) -> None:
        """Create the directory and its parents. Best effort."""
        try:
            self.path(*segments).mkdir(mode=DIR_PERM, parents=True, exist_ok=True)
        except OSError as e:
            logger.debug(f"Could not create {self.path(*segments)}: {e}")

    def remove(self, *segments: str) -> None:
        """Delete the tree at segments. Missing paths are ignored."""
        target = self.path(*segments)
        if target.is_symlink() or target.is_file():
            target.unlink(missing_ok=True)
        else:
            shutil.rmtree(target, ignore_errors=True)

    def write_file(self, data: bytes, perm: int, *segments: str) -> None:
        """Write data to the file at segments. Parent must already exist."""
        target = self.path(*segments)
        target.write_bytes(data)
        os.chmod(target, perm)

    def read_file(self, *segments: str) -> bytes:
        """Read the file at segments."""
        return self.path(*segments).read_bytes()

    def hash_dir(self, *segments: str) -> str:
        """Compute "sha256:<hex>" over every file below segments.

        Relative file paths (POSIX separators) are sorted, then each path's
        bytes followed by the file's bytes feed a single SHA-256. Directories
        are not entries, so empty directories do not affect the digest. A
        symlink to a directory is an entry and cannot be read, so it fails.

        Raises:
            IntegrityComputeError: If the directory is missing or an entry is unreadable
        """
        directory = self.path(*segments)
        if not directory.is_dir():
            raise IntegrityComputeError(
                f"Cannot hash {directory}: not a directory",
                context={"path": str(directory)},
            )

        files: list[str] = []

        def _raise(error: OSError) -> None:
            raise error

        try:
            for dirpath, dirnames, filenames in os.walk(directory, onerror=_raise):
                rel_dir = Path(dirpath).relative_to(directory)
                for name in filenames:
                    files.append((rel_dir / name).as_posix())
                # os.walk does not follow directory symlinks; reading one as a file fails below
                for name in dirnames:
                    if os.path.islink(os.path.join(dirpath, name)):
                        files.append((rel_dir / name).as_posix())

            files.sort()

            digest = hashlib.sha256()
            for rel in files:
                digest.update(rel.encode())
                digest.update((directory / rel).read_bytes())
        except OSError as e:
            raise IntegrityComputeError(
                f"Failed to hash {directory}: {e}",
                context={"path": str(directory)},
            ) from e

        return HASH_PREFIX + digest.hexdigest()

    def staging_path(self, *segments: str) -> Path:
        """Return a fresh temporary sibling of segments for building a new entry.

        The parent directory is created; the staging path itself is not.
        """
        final = self.path(*segments)
        final.parent.mkdir(mode=DIR_PERM, parents=True, exist_ok=True)
        return final.parent / f".{final.name}.tmp-{uuid.uuid4().hex[:12]}"

    def publish(self, staging: Path, *segments: str) -> bool:
        """Atomically move a staged directory into place.

        Returns:
            True if the staged entry was published, False if another writer
            published the same entry first (the staged copy is discarded).

        Raises:
            SourceFetchError: If the rename fails for another reason (the staged copy is discarded)
        """
        final = self.path(*segments)
        try:
            os.rename(staging, final)
        except OSError as e:
            if e.errno not in (errno.EEXIST, errno.ENOTEMPTY) and not final.exists():
                shutil.rmtree(staging, ignore_errors=True)
                raise SourceFetchError(
                    f"Failed to publish {final}: {e}",
                    context={"path": str(final), "staging": str(staging)},
                ) from e
            logger.debug(f"{final} already published by another writer, discarding {staging.name}")
            shutil.rmtree(staging, ignore_errors=True)
            return False
        return True
