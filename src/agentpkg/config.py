"""Environment-driven defaults.

Callers inject paths and policy (Store root, lock path). These helpers only
supply defaults when nothing is injected.
"""

import os
from pathlib import Path

STORE_HOME_ENV = "APKG_HOME"
CONTAINER_ENGINE_ENV = "APKG_CONTAINER_ENGINE"
PYPI_URL_ENV = "APKG_PYPI_URL"

DEFAULT_STORE_DIRNAME = ".apkg"
DEFAULT_PYPI_URL = "https://pypi.org/pypi"

# Preference order when no engine override is set
CONTAINER_ENGINES = ("docker", "podman")


def default_store_root() -> Path:
    """Return the store root: $APKG_HOME, else ~/.apkg."""
    override = os.environ.get(STORE_HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_STORE_DIRNAME


def container_engine_override() -> str | None:
    """Return the container engine named by $APKG_CONTAINER_ENGINE, if any."""
    return os.environ.get(CONTAINER_ENGINE_ENV) or None


def pypi_json_url(package: str) -> str:
    """Return the PyPI JSON metadata URL for a package."""
    base = os.environ.get(PYPI_URL_ENV) or DEFAULT_PYPI_URL
    return f"{base.rstrip('/')}/{package}/json"
