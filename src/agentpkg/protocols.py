"""Protocol every source variant implements.

Per IMPLEMENTATION_PHILOSOPHY: Composition over inheritance. The store is
injected per call; sources hold only their input fields.
"""

from typing import Protocol
from typing import runtime_checkable

from .schema import ResolvedSource
from .store import Store


@runtime_checkable
class SourceProtocol(Protocol):
    """Protocol for package sources.

    Implementations: GitSource, NPMSource, UVSource, GoSource, OCISource,
    StaticSource, LocalSource.
    """

    async def fetch(self, store: Store) -> ResolvedSource:
        """Materialize the source into the store (or validate a local path).

        Args:
            store: Content-addressable store to cache content in

        Returns:
            ResolvedSource with directory, commit and integrity for the lockfile

        Raises:
            SourceError: If resolution or installation fails
        """
        ...
