"""Tests for the docker compose provisioner."""

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import AsyncMock, call, patch

import pytest

from builder_testsuite.config import BuildConfig, BuilderConfig, TopologyConfig
from builder_testsuite.environment.commands import CommandOutput
from builder_testsuite.environment.docker import (
    DockerComposeConfig,
    DockerComposeProvisioner,
)
from builder_testsuite.exceptions import BuildError, CommandError, EnvironmentStartError
from builder_testsuite.testing.docker.payloads import container, ps_output

log = logging.getLogger("tests.docker")

COMPOSE = (
    "docker",
    "compose",
    "--file",
    "/suite/clients/docker-compose.yml",
    "--project-name",
    "builder-testsuite",
)


@pytest.fixture
def config() -> DockerComposeConfig:
    """Create backend configuration rooted at /suite."""
    return DockerComposeConfig(
        build=BuildConfig(
            repo="flashbots/builder", branch="main", base_dir=Path("/suite")
        ),
        builder=BuilderConfig(algo_type="greedy-buckets"),
        topology=TopologyConfig(),
    )


@pytest.fixture
def provisioner(config: DockerComposeConfig) -> DockerComposeProvisioner:
    """Create provisioner."""
    return DockerComposeProvisioner(config=config, log=log)


@pytest.fixture
def run_command() -> Iterator[AsyncMock]:
    """Patch command execution."""
    with patch(
        "builder_testsuite.environment.docker.run_command",
        new_callable=AsyncMock,
        return_value=CommandOutput(stdout="", stderr=""),
    ) as mock:
        yield mock


def failed(*args: str) -> CommandError:
    """Create the error a failing command raises."""
    return CommandError(args, 1, "boom")


class TestBuildAll:
    """Tests for build_all method."""

    async def test_builds_only_builder_image(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Builds just the builder image with repo and branch build args."""
        await provisioner.build_all(build_only_core=True)

        run_command.assert_called_once()
        args = run_command.call_args.args
        assert args[:5] == (
            "docker",
            "build",
            "--quiet",
            "--tag",
            "flashbots/builder:latest",
        )
        assert "branch=main" in args
        assert "repo=flashbots/builder" in args
        assert args[-1] == str(Path("/suite/clients/execution").resolve())

    async def test_builds_whole_topology(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Also builds the consensus image and compose services."""
        await provisioner.build_all(build_only_core=False)

        assert run_command.call_count == 3
        consensus_args = run_command.call_args_list[1].args
        assert "flashbots/prysm/beacon-chain:latest" in consensus_args
        assert "--build-arg" not in consensus_args
        assert run_command.call_args_list[2] == call(
            *COMPOSE, "build", "--quiet", log=log
        )

    async def test_omits_empty_build_args(
        self, config: DockerComposeConfig, run_command: AsyncMock
    ) -> None:
        """Passes no build args when repo and branch are unset."""
        provisioner = DockerComposeProvisioner(
            config=config.model_copy(update={"build": BuildConfig()}), log=log
        )

        await provisioner.build_all(build_only_core=True)

        assert "--build-arg" not in run_command.call_args.args

    async def test_raises_build_error(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Wraps command failures in BuildError."""
        run_command.side_effect = failed("docker", "build")

        with pytest.raises(BuildError, match="flashbots/builder:latest"):
            await provisioner.build_all(build_only_core=True)


class TestLifecycle:
    """Tests for start and stop."""

    async def test_start_passes_builder_config(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Starts compose detached with the builder environment."""
        await provisioner.start()

        run_command.assert_called_once_with(
            *COMPOSE,
            "up",
            "--detach",
            "--wait",
            log=log,
            env={"BUILDER_ALGO_TYPE": "greedy-buckets"},
        )

    async def test_start_failure_raises_environment_start_error(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Wraps compose failures in EnvironmentStartError."""
        run_command.side_effect = failed("docker", "compose", "up")

        with pytest.raises(EnvironmentStartError, match="boom"):
            await provisioner.start()

    async def test_stop_removes_orphans(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Tears compose down including orphans and local images."""
        await provisioner.stop()

        run_command.assert_called_once_with(
            *COMPOSE, "down", "--remove-orphans", "--rmi", "local", log=log
        )

    async def test_absolute_compose_file_is_used_as_is(
        self, config: DockerComposeConfig, run_command: AsyncMock
    ) -> None:
        """Does not resolve absolute compose files against the base dir."""
        topology = TopologyConfig(compose_file=Path("/elsewhere/compose.yml"))
        provisioner = DockerComposeProvisioner(
            config=config.model_copy(update={"topology": topology}), log=log
        )

        await provisioner.stop()

        assert "/elsewhere/compose.yml" in run_command.call_args.args


class TestListRunningProcesses:
    """Tests for list_running_processes method."""

    async def test_parses_containers(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Returns one handle per container line."""
        run_command.return_value = CommandOutput(
            stdout=ps_output(
                container(container_id="a" * 64, service="geth"),
                container(container_id="b" * 64, service="beacon"),
            ),
            stderr="",
        )

        processes = await provisioner.list_running_processes()

        assert [p.id for p in processes] == ["a" * 64, "b" * 64]
        assert [p.role for p in processes] == ["geth", "beacon"]
        assert "label=com.docker.compose.project=builder-testsuite" in (
            run_command.call_args.args
        )

    async def test_returns_empty_without_containers(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Returns no handles when nothing runs."""
        assert await provisioner.list_running_processes() == []

    async def test_find_builder_process(
        self, provisioner: DockerComposeProvisioner, run_command: AsyncMock
    ) -> None:
        """Finds the builder among the compose containers."""
        run_command.return_value = CommandOutput(
            stdout=ps_output(
                container(container_id="b" * 64, service="beacon"),
                container(container_id="abc123456789", service="geth"),
            ),
            stderr="",
        )

        builder = await provisioner.find_process("geth")

        assert builder.id == "abc123456789"


class TestFromConfig:
    """Tests for from_config factory."""

    async def test_checks_compose_version(
        self, config: DockerComposeConfig, run_command: AsyncMock
    ) -> None:
        """Verifies the compose plugin before yielding the provisioner."""
        run_command.return_value = CommandOutput(stdout="2.27.0\n", stderr="")

        async with DockerComposeProvisioner.from_config(config, log) as provisioner:
            assert provisioner.config == config

        run_command.assert_called_once_with(
            "docker", "compose", "version", "--short", log=log
        )
