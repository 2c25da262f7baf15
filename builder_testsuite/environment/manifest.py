"""Environment backend manifest definition for the plugin system."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pydantic import BaseModel

from builder_testsuite.environment.base import EnvironmentProvisioner
from builder_testsuite.environment.docker import (
    DockerComposeConfig,
    DockerComposeProvisioner,
)


@dataclass(frozen=True, kw_only=True)
class BackendManifest[ConfigT: BaseModel]:
    """Manifest describing an environment backend plugin.

    The manifest references the backend's configuration class and a factory
    producing a provisioner whose lifetime is bound to an async context.
    """

    config_cls: type[ConfigT]
    provisioner_factory: Callable[
        [ConfigT, logging.Logger],
        AbstractAsyncContextManager[EnvironmentProvisioner],
    ]


docker_compose_manifest = BackendManifest(
    config_cls=DockerComposeConfig,
    provisioner_factory=DockerComposeProvisioner.from_config,
)
