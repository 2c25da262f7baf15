"""Abstract base class for test environment provisioners."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from builder_testsuite.config import COMPOSE_SERVICE_LABEL
from builder_testsuite.exceptions import ProcessNotFoundError


@dataclass(frozen=True, kw_only=True)
class ProcessHandle:
    """A running process of the environment (a container)."""

    id: str
    name: str = ""
    labels: Mapping[str, str] = field(default_factory=dict)

    @property
    def role(self) -> str | None:
        """Role of the process in the topology, if labelled."""
        return self.labels.get(COMPOSE_SERVICE_LABEL)


class EnvironmentProvisioner(ABC):
    """Builds, starts and stops the fixed environment topology.

    The environment is a singleton: only one instance runs at a time and
    ``stop`` tears down everything ``start`` brought up.
    """

    @abstractmethod
    async def build_all(self, build_only_core: bool) -> None:
        """Build the images the environment needs.

        Args:
            build_only_core: Only build the builder image, skip the
                supporting chain infrastructure.

        """

    @abstractmethod
    async def start(self) -> None:
        """Bring the environment up.

        Raises:
            EnvironmentStartError: If the environment cannot be started.

        """

    @abstractmethod
    async def stop(self) -> None:
        """Tear the environment down."""

    @abstractmethod
    async def list_running_processes(self) -> Sequence[ProcessHandle]:
        """Return the processes currently running in the environment."""

    async def find_process(self, role: str) -> ProcessHandle:
        """Return the first running process with the given role.

        Raises:
            ProcessNotFoundError: If no running process has that role.

        """
        for process in await self.list_running_processes():
            if process.role == role:
                return process
        raise ProcessNotFoundError("no builder container found")
