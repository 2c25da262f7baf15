"""Test runner coordinating environment, probe and artifacts per test case."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from pathlib import Path

from builder_testsuite.artifacts import (
    METRICS_DIR,
    ArtifactWriter,
    ensure_directory,
    metrics_artifact_name,
)
from builder_testsuite.config import TopologyConfig
from builder_testsuite.environment.base import EnvironmentProvisioner
from builder_testsuite.exceptions import EnvironmentStartError
from builder_testsuite.models.catalog import TestCaseDefinition, TestCatalog
from builder_testsuite.models.result import (
    RunReport,
    RunSummary,
    TestExecution,
    TestResult,
)
from builder_testsuite.probe import BuilderProbe

type ProbeFactory = Callable[
    [TopologyConfig, logging.Logger], AbstractAsyncContextManager[BuilderProbe]
]


@dataclass(frozen=True, kw_only=True)
class TestRunner:
    """Runs every test case of a catalog against a fresh environment.

    Test cases run one after another. Each gets its own environment start
    and stop, and the stop is awaited before the next case starts.
    """

    __test__ = False

    provisioner: EnvironmentProvisioner
    writer: ArtifactWriter
    catalog: TestCatalog
    topology: TopologyConfig
    log: logging.Logger = field(repr=False)
    results_dir: Path = Path("results")
    probe_factory: ProbeFactory = BuilderProbe.connect

    @property
    def metrics_dir(self) -> Path:
        """Directory receiving the metrics artifacts."""
        return self.results_dir / METRICS_DIR

    async def run(self) -> RunReport:
        """Run all test cases in catalog order.

        Returns:
            Executions in catalog order and their summary

        Raises:
            StorageError: If the results directory cannot be created
            EnvironmentStartError: If the environment fails to start for any
                test case; the remaining test cases are not run

        """
        ensure_directory(self.results_dir, self.log)

        executions: list[TestExecution] = []
        for definition in self.catalog.tests:
            execution = await self._run_test(definition)
            self.log.info(
                "Test completed: name=%s passed=%s duration=%.1fs",
                execution.name,
                execution.result.passed,
                execution.duration,
            )
            executions.append(execution)

        return RunReport(
            executions=executions,
            summary=RunSummary.from_executions(executions),
        )

    async def _run_test(self, definition: TestCaseDefinition) -> TestExecution:
        """Provision, collect and tear down for a single test case."""
        self.log.info("Running test: id=%d name=%s", definition.id, definition.name)
        started = asyncio.get_running_loop().time()

        try:
            await self.provisioner.start()
        except (EnvironmentStartError, asyncio.CancelledError):
            # Some services may be up already
            await self._teardown()
            raise

        try:
            result, artifact_path = await self._collect_metrics(definition)
        finally:
            await self._teardown()

        return TestExecution(
            definition=definition,
            result=result,
            duration=asyncio.get_running_loop().time() - started,
            artifact_path=artifact_path,
        )

    async def _collect_metrics(
        self, definition: TestCaseDefinition
    ) -> tuple[TestResult, Path | None]:
        """Probe the builder and persist its metrics snapshot.

        Any error is turned into a failed result for this test case only.
        """
        try:
            async with self.probe_factory(self.topology, self.log) as probe:
                metrics = await probe.fetch_metrics()

            builder = await self.provisioner.find_process(self.topology.builder_role)
            artifact_path = await self.writer.write_named(
                self.metrics_dir,
                metrics_artifact_name(definition.name, builder.id),
                metrics,
            )
        except Exception as e:  # CancelledError aborts the run after teardown
            self.log.error("Test %s failed: %s", definition.name, e)
            return TestResult.failure(str(e) or type(e).__name__), None

        return TestResult.success(), artifact_path

    async def _teardown(self) -> None:
        try:
            await self.provisioner.stop()
        except Exception as e:
            self.log.error("Failed to stop environment: %s", e, exc_info=e)
