"""Exception hierarchy for the builder test suite.

Errors raised while provisioning the environment or preparing the results
directory abort a run. Every other error is confined to the test case that
raised it and ends up as that case's failure details.
"""


class BuilderTestsuiteError(Exception):
    """Base class for all errors raised by the test suite."""


class CommandError(BuilderTestsuiteError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(
        self, command: tuple[str, ...], returncode: int, stderr: str
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr or "no output"
        super().__init__(f"{' '.join(command)} exited with {returncode}: {detail}")


class BuildError(BuilderTestsuiteError):
    """Raised when a docker image cannot be built."""


class EnvironmentStartError(BuilderTestsuiteError):
    """Raised when the test environment fails to start."""


class ProcessNotFoundError(BuilderTestsuiteError):
    """Raised when no running process carries the requested role."""


class ProbeConnectionError(BuilderTestsuiteError):
    """Raised when the builder's control endpoint cannot be reached."""


class TransportError(BuilderTestsuiteError):
    """Raised when fetching metrics from the builder fails."""


class StorageError(BuilderTestsuiteError):
    """Raised when a results directory or artifact cannot be written."""


class CatalogError(BuilderTestsuiteError):
    """Raised when a test catalog file is malformed."""


class BackendNotFoundError(BuilderTestsuiteError):
    """Raised when an environment backend is not registered."""
