"""Environment provisioning for the builder test suite."""

from builder_testsuite.environment.base import EnvironmentProvisioner, ProcessHandle
from builder_testsuite.environment.docker import (
    DockerComposeConfig,
    DockerComposeProvisioner,
)
from builder_testsuite.environment.manifest import docker_compose_manifest

__all__ = [
    "DockerComposeConfig",
    "DockerComposeProvisioner",
    "EnvironmentProvisioner",
    "ProcessHandle",
    "docker_compose_manifest",
]
