"""Turn references and manifest records into sources.

Compact skill references:
- ``./dir``, ``../dir`` or an absolute path: local directory
- ``owner/repo[/sub/path]@ref``: GitHub repository at ref
"""

import os

from .exceptions import ParseError
from .exceptions import UnsupportedConfigError
from .git import GitSource
from .gomod import GoSource
from .local import LocalSource
from .npm import NPMSource
from .oci import OCISource
from .protocols import SourceProtocol
from .schema import CommandServer
from .schema import ContainerServer
from .schema import ExternalServer
from .schema import ManagedServer
from .schema import MCPSource
from .schema import SkillSource
from .static import StaticSource
from .uv import UVSource

GITHUB_URL = "https://github.com/{owner}/{repo}.git"
REF_GRAMMAR = "owner/repo[/path]@ref (e.g. anthropics/skills/skills/pdf@main)"

MANAGED_SOURCES = {
    "npm": NPMSource,
    "uv": UVSource,
    "go": GoSource,
}


def is_local_path(ref: str) -> bool:
    return ref.startswith("./") or ref.startswith("../") or os.path.isabs(ref)


def parse_ref(ref: str) -> tuple[SourceProtocol, SkillSource]:
    """Parse a compact reference into a source and its manifest record.

    Example:
        >>> source, record = parse_ref("anthropics/skills/skills/pdf@main")
        >>> record.git, record.path, record.ref
        ('https://github.com/anthropics/skills.git', 'skills/pdf', 'main')

    Raises:
        ParseError: If the reference doesn't match the grammar
    """
    if is_local_path(ref):
        return LocalSource(path=ref), SkillSource(path=ref)

    location, sep, git_ref = ref.partition("@")
    if not sep or not git_ref:
        raise ParseError(f"Invalid ref {ref!r}: must contain @ref, expected {REF_GRAMMAR}", context={"ref": ref})

    segments = location.split("/")
    if len(segments) < 2 or not segments[0] or not segments[1]:
        raise ParseError(
            f"Invalid ref {ref!r}: must have at least owner/repo, expected {REF_GRAMMAR}", context={"ref": ref}
        )

    owner, repo, *rest = segments
    sub_path = "/".join(rest) or None
    git_url = GITHUB_URL.format(owner=owner, repo=repo)

    record = SkillSource(git=git_url, path=sub_path, ref=git_ref)
    return GitSource(url=git_url, path=sub_path, ref=git_ref), record


def source_from_skill_config(config: SkillSource) -> SourceProtocol:
    """Git source when ``git`` is set, otherwise the local ``path``."""
    if config.git:
        return GitSource(url=config.git, path=config.path, ref=config.ref or "")

    if not config.path:
        raise UnsupportedConfigError("Skill source has neither git nor path", context=config.model_dump())
    return LocalSource(path=config.path)


def source_from_mcp_config(name: str, config: MCPSource) -> SourceProtocol:
    """Select the source for an MCP server config.

    An empty ``config.name`` is filled from the manifest key on a copy; the
    caller's record keeps its fields.

    Raises:
        UnsupportedConfigError: If the config matches no installable source
    """
    if not config.name:
        config = config.model_copy(update={"name": name})

    server = config.server
    if isinstance(server, ManagedServer):
        source_cls = MANAGED_SOURCES.get(server.ecosystem)
        if source_cls is None:
            raise UnsupportedConfigError(
                f"MCP server {name!r}: unsupported managed package {server.package!r} "
                f"(expected one of {', '.join(p + ':' for p in MANAGED_SOURCES)})",
                context={"name": name, "package": server.package},
            )
        return source_cls(server.spec, config)

    if isinstance(server, ContainerServer):
        return OCISource(name=config.name, config=config)

    if isinstance(server, ExternalServer | CommandServer):
        return StaticSource(name=config.name, config=config)

    raise UnsupportedConfigError(f"MCP server {name!r}: unsupported configuration", context={"name": name})
