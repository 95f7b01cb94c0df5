"""agentpkg - Source resolution and content-addressable store for agent add-ons.

Turns references (git refs, npm/PyPI/Go package specs, container images,
local paths, inline MCP descriptors) into immutable, integrity-checked
directories in a shared store.

Per KERNEL_PHILOSOPHY: This is library mechanism, apps inject policy (store root, lock path).
"""

from .exceptions import AmbiguousShortHashError
from .exceptions import IntegrityComputeError
from .exceptions import LocalPathError
from .exceptions import ParseError
from .exceptions import RefNotFoundError
from .exceptions import SourceError
from .exceptions import SourceFetchError
from .exceptions import SubprocessError
from .exceptions import UnsupportedConfigError
from .git import GitSource
from .gomod import GoSource
from .local import LocalSource
from .lock import LockFile
from .lock import MCPLockEntry
from .lock import SkillLockEntry
from .npm import NPMSource
from .oci import OCISource
from .protocols import SourceProtocol
from .reference import parse_ref
from .reference import source_from_mcp_config
from .reference import source_from_skill_config
from .resolver import SourceResolver
from .schema import CommandServer
from .schema import ContainerServer
from .schema import ExternalServer
from .schema import ManagedServer
from .schema import MCPSource
from .schema import ResolvedSource
from .schema import SkillSource
from .schema import load_descriptor
from .static import StaticSource
from .store import Store
from .uv import UVSource

__all__ = [
    # Store
    "Store",
    # Sources
    "SourceProtocol",
    "GitSource",
    "NPMSource",
    "UVSource",
    "GoSource",
    "OCISource",
    "StaticSource",
    "LocalSource",
    # Configuration records
    "SkillSource",
    "MCPSource",
    "ContainerServer",
    "ExternalServer",
    "ManagedServer",
    "CommandServer",
    "ResolvedSource",
    "load_descriptor",
    # References
    "parse_ref",
    "source_from_skill_config",
    "source_from_mcp_config",
    # Lock file
    "LockFile",
    "SkillLockEntry",
    "MCPLockEntry",
    "SourceResolver",
    # Exceptions
    "SourceError",
    "SourceFetchError",
    "RefNotFoundError",
    "AmbiguousShortHashError",
    "UnsupportedConfigError",
    "SubprocessError",
    "IntegrityComputeError",
    "LocalPathError",
    "ParseError",
]

__version__ = "0.1.0"
