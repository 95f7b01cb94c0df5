"""Source resolution exceptions.

Every error carries a human-readable message naming the source and identity,
plus a context dict for callers that want structured details.
"""


class SourceError(Exception):
    """Base exception for source resolution and store operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (url, ref, path, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class SourceFetchError(SourceError):
    """Fetching or installing a source failed."""


class RefNotFoundError(SourceError):
    """Branch, tag, commit or package version not found on the remote."""


class AmbiguousShortHashError(SourceError):
    """Abbreviated commit hash matches more than one object."""


class UnsupportedConfigError(SourceError):
    """Configuration matches no known source variant."""


class IntegrityComputeError(SourceError):
    """Integrity hash could not be computed."""


class LocalPathError(SourceError):
    """Local source path is missing or not a directory."""


class ParseError(SourceError):
    """Malformed reference string."""


class SubprocessError(SourceError):
    """External tool exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int | None, stderr: str = ""):
        """Initialize from a finished (or unstartable) command.

        Args:
            args: Command line that was run
            returncode: Exit status, or None if the command could not be started
            stderr: Captured standard error, stripped
        """
        command = " ".join(args)
        if returncode is None:
            message = f"{command}: could not start"
        else:
            message = f"{command}: exit status {returncode}"
        if stderr:
            message = f"{message}: {stderr}"
        super().__init__(message, context={"args": list(args), "returncode": returncode})
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
