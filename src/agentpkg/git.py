"""Git repositories, cached at repos/<host>/<owner>/<repo>/<commit>.

The ref is always resolved to a full commit before the cache is consulted,
since the commit is the cache key. Mutable refs (branches, "latest" tags)
therefore cost one ``git ls-remote``; a full commit hash costs nothing.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from . import process
from .exceptions import AmbiguousShortHashError
from .exceptions import ParseError
from .exceptions import RefNotFoundError
from .exceptions import SourceFetchError
from .packages import discard
from .schema import ResolvedSource
from .store import Store

logger = logging.getLogger(__name__)

HEX_RE = re.compile(r"^[0-9a-fA-F]+$")
FULL_HASH_LEN = 40
MIN_SHORT_HASH_LEN = 7
PEELED_SUFFIX = "^{}"


def is_hex(value: str) -> bool:
    return bool(HEX_RE.match(value))


def is_commit_hash(value: str) -> bool:
    """Full 40-character hex SHA-1."""
    return len(value) == FULL_HASH_LEN and is_hex(value)


def is_short_commit_hash(value: str) -> bool:
    """Abbreviated hash (7-39 hex characters)."""
    return MIN_SHORT_HASH_LEN <= len(value) < FULL_HASH_LEN and is_hex(value)


def parse_git_url(url: str) -> tuple[str, list[str]]:
    """Split a git URL into host and repository path parts.

    Handles SSH shorthand (git@github.com:owner/repo.git), scheme URLs and
    plain filesystem paths (host "local").

    Example:
        >>> parse_git_url("https://github.com/anthropics/skills.git")
        ('github.com', ['anthropics', 'skills'])
    """
    idx = url.find(":")
    if idx > 0 and "/" not in url[:idx] and "://" not in url:
        host = url[:idx].rpartition("@")[2]
        repo_path = url[idx + 1 :]
    else:
        parts = urlsplit(url)
        host = parts.netloc.rpartition("@")[2]
        repo_path = parts.path

    repo_path = repo_path.strip("/").removesuffix(".git")
    segments = [s for s in repo_path.split("/") if s]
    if not segments or ".." in segments:
        raise ParseError(f"Cannot derive repository path from git URL {url!r}", context={"url": url})

    return host or "local", segments


def split_subpath(path: str | None) -> list[str]:
    """Split a repository sub-path, refusing anything that would leave the checkout."""
    if not path:
        return []
    if path.startswith("/"):
        raise ParseError(f"Sub-path {path!r} must be relative to the repository root", context={"path": path})
    segments = [s for s in path.split("/") if s and s != "."]
    if ".." in segments:
        raise ParseError(f"Sub-path {path!r} must not contain '..'", context={"path": path})
    return segments


def _parse_ls_remote(output: str) -> list[tuple[str, str]]:
    entries = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        entries.append((fields[0], fields[1]))
    return entries


@dataclass
class GitSource:
    """Repository checkout at a ref, optionally narrowed to a sub-path.

    Args:
        url: Repository URL (https, ssh shorthand, or filesystem path)
        path: Sub-path within the repository holding the package
        ref: Branch, tag, full or abbreviated commit hash
    """

    url: str
    path: str | None = None
    ref: str = ""

    async def fetch(self, store: Store) -> ResolvedSource:
        subpath = split_subpath(self.path)
        host, repo_parts = parse_git_url(self.url)

        commit = await self.resolve_ref()
        logger.debug(f"Resolved {self.url}@{self.ref} to {commit}")

        segments = ["repos", host, *repo_parts, commit]

        if store.exists(*segments):
            logger.debug(f"Cache hit for {self.url} at {commit}")
        else:
            await self._clone_entry(store, segments, commit)

        content = [*segments, *subpath]
        integrity = store.hash_dir(*content)

        return ResolvedSource(
            dir=store.path(*content),
            commit=commit,
            ref=self.ref,
            integrity=integrity,
        )

    async def resolve_ref(self) -> str:
        """Resolve the ref to a full commit hash.

        Raises:
            RefNotFoundError: No branch, tag or commit matches
            AmbiguousShortHashError: An abbreviated hash matches several objects
        """
        if is_commit_hash(self.ref):
            return self.ref.lower()

        if is_short_commit_hash(self.ref):
            return await self._resolve_short_hash()

        output = await process.run("git", "ls-remote", self.url, self.ref, self.ref + PEELED_SUFFIX)

        commit = None
        for obj, name in _parse_ls_remote(output):
            # Annotated tags advertise the tag object; the peeled entry is the commit
            if name.endswith(PEELED_SUFFIX):
                return obj
            commit = obj

        if commit is None:
            raise RefNotFoundError(
                f"Ref {self.ref!r} not found in {self.url}",
                context={"url": self.url, "ref": self.ref},
            )
        return commit

    async def _resolve_short_hash(self) -> str:
        output = await process.run("git", "ls-remote", self.url)

        prefix = self.ref.lower()
        matches = {obj.lower() for obj, _ in _parse_ls_remote(output) if obj.lower().startswith(prefix)}

        if not matches:
            raise RefNotFoundError(
                f"Short hash {self.ref!r} not found in {self.url}",
                context={"url": self.url, "ref": self.ref},
            )
        if len(matches) > 1:
            raise AmbiguousShortHashError(
                f"Short hash {self.ref!r} is ambiguous in {self.url}",
                context={"url": self.url, "ref": self.ref, "matches": sorted(matches)},
            )
        return matches.pop()

    async def _clone_entry(self, store: Store, segments: list[str], commit: str) -> None:
        staging = store.staging_path(*segments)
        logger.info(f"Cloning {self.url} at {commit}")
        try:
            # A hex ref may not name a branch, so fetch the commit directly
            if is_hex(self.ref):
                await self._clone_commit(str(staging), commit)
            else:
                await self._clone_branch(str(staging))
        except asyncio.CancelledError:
            discard(staging)
            raise
        except Exception as e:
            discard(staging)
            raise SourceFetchError(
                f"Failed to clone {self.url} at {commit}: {e}",
                context={"url": self.url, "ref": self.ref, "commit": commit},
            ) from e

        store.publish(staging, *segments)

    async def _clone_branch(self, dest: str) -> None:
        await process.run("git", "clone", "--depth", "1", "--branch", self.ref, self.url, dest)

    async def _clone_commit(self, dest: str, commit: str) -> None:
        # Needs uploadpack.allowReachableSHA1InWant on the server (GitHub, GitLab, Bitbucket allow it)
        for args in (
            ("init", dest),
            ("-C", dest, "remote", "add", "origin", self.url),
            ("-C", dest, "fetch", "--depth", "1", "origin", commit),
            ("-C", dest, "checkout", "FETCH_HEAD"),
        ):
            await process.run("git", *args)
