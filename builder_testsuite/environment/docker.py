"""Docker compose backed environment provisioner."""

import json
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field

from builder_testsuite.config import (
    COMPOSE_PROJECT_LABEL,
    BuildConfig,
    BuilderConfig,
    TopologyConfig,
)
from builder_testsuite.environment.base import EnvironmentProvisioner, ProcessHandle
from builder_testsuite.environment.commands import run_command
from builder_testsuite.environment.models import ContainerSummary
from builder_testsuite.exceptions import BuildError, CommandError, EnvironmentStartError


class DockerComposeConfig(BaseModel):
    """Configuration for the docker compose backend."""

    build: BuildConfig = Field(default_factory=BuildConfig)
    builder: BuilderConfig = Field(default_factory=BuilderConfig)
    topology: TopologyConfig = Field(default_factory=TopologyConfig)


@dataclass(frozen=True, kw_only=True)
class DockerComposeProvisioner(EnvironmentProvisioner):
    """Provisions the environment with the docker CLI and compose plugin."""

    config: DockerComposeConfig
    log: logging.Logger = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: DockerComposeConfig, log: logging.Logger
    ) -> AsyncGenerator["DockerComposeProvisioner", None]:
        """Create a provisioner after checking the compose plugin is usable."""
        output = await run_command(
            "docker", "compose", "version", "--short", log=log
        )
        log.info("Using docker compose %s", output.stdout.strip())
        yield cls(config=config, log=log)

    @property
    def compose_file(self) -> Path:
        """Compose file, resolved against the build base directory."""
        compose_file = self.config.topology.compose_file
        if compose_file.is_absolute():
            return compose_file
        return self.config.build.base_dir / compose_file

    def _compose_args(self, *args: str) -> tuple[str, ...]:
        return (
            "docker",
            "compose",
            "--file",
            str(self.compose_file),
            "--project-name",
            self.config.topology.project_name,
            *args,
        )

    async def build_all(self, build_only_core: bool) -> None:
        """Build the builder image, and the rest of the topology if asked."""
        build = self.config.build
        await self._build_image(
            build.execution_context,
            build.builder_image,
            branch=build.branch,
            repo=build.repo,
        )
        if build_only_core:
            return

        await self._build_image(build.consensus_context, build.consensus_image)
        self.log.info("Building compose services")
        try:
            await run_command(*self._compose_args("build", "--quiet"), log=self.log)
        except CommandError as e:
            self.log.error("Compose build failed: %s", e)
            raise BuildError(f"Compose build failed: {e}") from e

    async def _build_image(
        self,
        context_dir: Path,
        image_tag: str,
        *,
        branch: str = "",
        repo: str = "",
        dockerfile: str = "Dockerfile",
    ) -> None:
        """Build a single image from ``context_dir``.

        ``branch`` and ``repo`` are passed as build arguments so the
        Dockerfile can check out a specific source tree.
        """
        context = context_dir.resolve()
        args = ["docker", "build", "--quiet", "--tag", image_tag]
        args += ["--file", str(context / dockerfile)]
        if branch:
            args += ["--build-arg", f"branch={branch}"]
        if repo:
            args += ["--build-arg", f"repo={repo}"]
        args.append(str(context))

        self.log.info(
            "Building image %s from %s (branch=%s, repo=%s)",
            image_tag,
            context_dir,
            branch or "-",
            repo or "-",
        )
        try:
            await run_command(*args, log=self.log)
        except CommandError as e:
            self.log.error("Image build failed for %s: %s", image_tag, e)
            raise BuildError(f"Failed to build {image_tag}: {e}") from e

    async def start(self) -> None:
        """Bring up every compose service in the background."""
        self.log.info("Starting environment %s", self.config.topology.project_name)
        try:
            await run_command(
                *self._compose_args("up", "--detach", "--wait"),
                log=self.log,
                env=self.config.builder.to_environment(),
            )
        except CommandError as e:
            raise EnvironmentStartError(f"Failed to start environment: {e}") from e

    async def stop(self) -> None:
        """Remove the compose services, orphans and locally built images."""
        self.log.info("Stopping environment %s", self.config.topology.project_name)
        await run_command(
            *self._compose_args("down", "--remove-orphans", "--rmi", "local"),
            log=self.log,
        )

    async def list_running_processes(self) -> Sequence[ProcessHandle]:
        """List the containers of this compose project."""
        output = await run_command(
            "docker",
            "ps",
            "--no-trunc",
            "--format",
            "json",
            "--filter",
            f"label={COMPOSE_PROJECT_LABEL}={self.config.topology.project_name}",
            log=self.log,
        )
        containers = [
            ContainerSummary.model_validate(json.loads(line))
            for line in output.stdout.splitlines()
            if line.strip()
        ]
        return [
            ProcessHandle(id=c.id, name=c.names, labels=c.labels) for c in containers
        ]
