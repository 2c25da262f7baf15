"""Loading of environment backends from entry points."""

from importlib.metadata import entry_points
from typing import Any

from builder_testsuite.environment.manifest import BackendManifest
from builder_testsuite.exceptions import BackendNotFoundError

ENTRY_POINT_GROUP = "builder_testsuite.backends"


def load_backend_manifest(key: str) -> BackendManifest[Any]:
    """Load the backend manifest registered under ``key``.

    Backends register a ``BackendManifest`` in the
    ``builder_testsuite.backends`` entry point group, e.g.
    ``docker-compose``.

    Raises:
        BackendNotFoundError: If no backend is registered under the key, or
            the entry point does not point at a manifest

    """
    for entry in entry_points(group=ENTRY_POINT_GROUP, name=key):
        manifest = entry.load()
        if not isinstance(manifest, BackendManifest):
            raise BackendNotFoundError(
                f"Entry point '{key}' is not a backend manifest: {manifest!r}"
            )
        return manifest

    available = sorted(e.name for e in entry_points(group=ENTRY_POINT_GROUP))
    raise BackendNotFoundError(
        f"Backend '{key}' not found. Available backends: {available}"
    )
