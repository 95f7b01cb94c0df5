"""Source configuration records and resolved output.

SkillSource and MCPSource mirror the manifest entries the caller persists.
An MCP server's origin is a discriminated union on ``kind``, so exactly one
origin is ever populated.

MCPSource also owns the ``mcp.toml`` descriptor format: written next to
fetched content with tomli_w, read back with tomllib.
"""

import tomllib
from pathlib import Path
from typing import Annotated
from typing import Literal

import tomli_w
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

DESCRIPTOR_FILENAME = "mcp.toml"


class ResolvedSource(BaseModel):
    """Result of fetching a source (immutable value owned by the caller)."""

    model_config = ConfigDict(frozen=True)

    # Directory holding the usable package content
    dir: Path
    # Git only
    commit: str | None = None
    ref: str | None = None
    # None only for local sources
    integrity: str | None = None


class SkillSource(BaseModel):
    """Manifest record for a skill: a git checkout (git + ref) or a local path."""

    git: str | None = None
    path: str | None = None
    ref: str | None = None

    @property
    def is_git(self) -> bool:
        return bool(self.git)


class ContainerServer(BaseModel):
    """MCP server shipped as an OCI image."""

    kind: Literal["container"] = "container"
    image: str
    # Port inside the container to map to
    port: int | None = None
    # Stamped at fetch time
    digest: str | None = None
    path: str | None = None


class ExternalServer(BaseModel):
    """MCP server already reachable over HTTP."""

    kind: Literal["external"] = "external"
    url: str


class ManagedServer(BaseModel):
    """MCP server installed from a package ecosystem.

    ``package`` is "npm:<name>[@version]", "uv:<name>[==version]" or
    "go:<module>[@version]".
    """

    kind: Literal["managed"] = "managed"
    package: str

    @property
    def ecosystem(self) -> str:
        prefix, sep, _ = self.package.partition(":")
        return prefix if sep else ""

    @property
    def spec(self) -> str:
        _, sep, rest = self.package.partition(":")
        return rest if sep else self.package


class CommandServer(BaseModel):
    """MCP server run from a command already installed on the host."""

    kind: Literal["command"] = "command"
    command: str


ServerOrigin = Annotated[
    ContainerServer | ExternalServer | ManagedServer | CommandServer,
    Field(discriminator="kind"),
]


class MCPSource(BaseModel):
    """Manifest record for an MCP server."""

    transport: Literal["stdio", "http"]
    # Overrides the manifest key when set
    name: str = ""
    server: ServerOrigin
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def kind(self) -> str:
        return self.server.kind

    def descriptor_bytes(self) -> bytes:
        """Serialize to canonical TOML.

        Mapping keys are sorted, so equal configurations always produce equal
        bytes regardless of the order env vars or headers were declared in.
        """
        data = _sorted(self.model_dump(mode="json", exclude_none=True))
        return tomli_w.dumps(data).encode()

    @classmethod
    def from_descriptor(cls, descriptor_path: Path) -> "MCPSource":
        """
        Load an MCP server config from an mcp.toml descriptor.

        Raises:
            FileNotFoundError: If the descriptor doesn't exist
            tomllib.TOMLDecodeError: If invalid TOML
            pydantic.ValidationError: If the content matches no known origin
        """
        if not descriptor_path.exists():
            raise FileNotFoundError(f"{DESCRIPTOR_FILENAME} not found: {descriptor_path}")

        with open(descriptor_path, "rb") as f:
            data = tomllib.load(f)

        return cls.model_validate(data)


def load_descriptor(directory: Path) -> MCPSource:
    """Read the descriptor written alongside fetched content in directory."""
    return MCPSource.from_descriptor(Path(directory) / DESCRIPTOR_FILENAME)


def _sorted(value):
    if isinstance(value, dict):
        return {key: _sorted(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted(item) for item in value]
    return value
