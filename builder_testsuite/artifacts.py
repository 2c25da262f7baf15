"""Persistence of per-test artifacts under the results directory."""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from builder_testsuite.exceptions import StorageError

METRICS_DIR = "metrics"
SHORT_ID_LENGTH = 8


def normalize_test_name(name: str) -> str:
    """Turn a display name into a filename fragment.

    >>> normalize_test_name("Static Payload")
    'static-payload'
    """
    return name.lower().replace(" ", "-")


def metrics_artifact_name(test_name: str, process_id: str) -> str:
    """Build the metrics artifact filename for a test and builder process."""
    return f"{normalize_test_name(test_name)}-{process_id[:SHORT_ID_LENGTH]}.json"


def ensure_directory(path: Path, log: logging.Logger) -> None:
    """Create ``path`` and its parents unless it already is a directory.

    Raises:
        StorageError: If the path is occupied by a non-directory or cannot
            be created.

    """
    if path.exists():
        if not path.is_dir():
            raise StorageError(f"{path} exists and is not a directory")
        return

    log.info("Creating directory %s", path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        log.critical("Failed to create directory %s: %s", path, e)
        raise StorageError(f"Failed to create directory {path}: {e}") from e


@dataclass(frozen=True, kw_only=True)
class ArtifactWriter:
    """Writes named payloads to disk."""

    log: logging.Logger = field(repr=False)

    async def write_named(self, directory: Path, name: str, payload: bytes) -> Path:
        """Write ``payload`` to ``directory / name`` and return the path.

        Raises:
            StorageError: If the directory is obstructed or the write fails.

        """
        return await asyncio.to_thread(self._write, directory, name, payload)

    def _write(self, directory: Path, name: str, payload: bytes) -> Path:
        ensure_directory(directory, self.log)
        target = directory / name
        try:
            target.write_bytes(payload)
        except OSError as e:
            raise StorageError(f"Failed to write {target}: {e}") from e
        self.log.debug("Wrote %d bytes to %s", len(payload), target)
        return target
