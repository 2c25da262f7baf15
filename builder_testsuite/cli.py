"""CLI entry point for the builder end-to-end test suite."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from builder_testsuite.artifacts import ArtifactWriter
from builder_testsuite.catalog import default_catalog, load_test_catalog
from builder_testsuite.config import TopologyConfig
from builder_testsuite.environment.loading import load_backend_manifest
from builder_testsuite.exceptions import BuilderTestsuiteError
from builder_testsuite.models.result import RunReport, RunSummary, TestExecution
from builder_testsuite.runner import TestRunner

# Verbosity levels 0-5, most to least severe
LOG_LEVELS = {
    0: logging.CRITICAL,
    1: logging.ERROR,
    2: logging.WARNING,
    3: logging.INFO,
    4: logging.DEBUG,
    5: logging.DEBUG,
}

STATUS_SYMBOLS = {
    True: "✓",
    False: "✗",
}


def log_results_summary(log: logging.Logger, report: RunReport) -> None:
    """Log a formatted summary of test results."""
    log.info("=" * 80)
    log.info("Test Results Summary:")
    log.info("=" * 80)

    for execution in report.executions:
        log.info(
            "%s %s: %s (%.2fs)",
            STATUS_SYMBOLS[execution.result.passed],
            execution.name,
            "pass" if execution.result.passed else "fail",
            execution.duration,
        )
        if execution.artifact_path:
            log.info("  Metrics: %s", execution.artifact_path)
        if execution.result.details:
            log.info("  Details: %s", execution.result.details)

    log.info(
        "Test run finished: tests=%d failed=%d",
        report.summary.tests,
        report.summary.tests_failed,
    )


def format_output(executions: Sequence[TestExecution]) -> dict[str, Any]:
    """Format executions for JSON output."""
    summary = RunSummary.from_executions(executions)
    return {
        "tests": summary.tests,
        "failed": summary.tests_failed,
        "results": [
            {
                "id": execution.definition.id,
                "name": execution.name,
                "passed": execution.result.passed,
                "details": execution.result.details,
                "duration": execution.duration,
                "artifact": (
                    str(execution.artifact_path) if execution.artifact_path else None
                ),
            }
            for execution in executions
        ],
    }


def failure_message(summary: RunSummary) -> str | None:
    """Describe how many tests failed, or None if all passed."""
    match summary.tests_failed:
        case 0:
            return None
        case 1:
            return "1 test failed"
        case failed:
            return f"{failed} tests failed"


async def run(
    *,
    backend_key: str,
    backend_config: dict[str, Any],
    topology: TopologyConfig,
    build_only_core: bool,
    results_dir: Path,
    catalog_path: Path | None = None,
) -> int:
    """Build images, run the catalog and return the exit code.

    Raises:
        BuilderTestsuiteError: If the run is aborted before it completes.

    """
    log = logging.getLogger("builder_testsuite")

    if catalog_path is None:
        catalog = default_catalog()
    else:
        log.info("Loading test catalog from %s", catalog_path)
        catalog = await load_test_catalog(catalog_path)

    log.info("Loading environment backend: %s", backend_key)
    manifest = load_backend_manifest(backend_key)
    config = manifest.config_cls.model_validate(backend_config)

    env_log = log.getChild("environment")
    async with manifest.provisioner_factory(config, env_log) as provisioner:
        await provisioner.build_all(build_only_core)

        runner = TestRunner(
            provisioner=provisioner,
            writer=ArtifactWriter(log=log.getChild("artifacts")),
            catalog=catalog,
            topology=topology,
            results_dir=results_dir,
            log=log.getChild("runner"),
        )
        log.info("Running %d test(s)...", len(catalog.tests))
        report = await runner.run()

    log_results_summary(log, report)
    print(json.dumps(format_output(report.executions), indent=2))

    if message := failure_message(report.summary):
        print(message, file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run end-to-end tests against a block builder"
    )
    parser.add_argument(
        "--loglevel",
        type=int,
        choices=sorted(LOG_LEVELS),
        default=3,
        help="Log level for system events (0-5)",
    )
    parser.add_argument(
        "--repo",
        default="",
        help="GitHub repo to build the builder docker image from",
    )
    parser.add_argument(
        "--branch",
        default="",
        help="Branch to build the builder docker image from",
    )
    parser.add_argument(
        "--algo",
        default="greedy",
        help="Name of the block building algorithm the builder runs",
    )
    parser.add_argument(
        "--only-builder",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Only build the builder image",
    )
    parser.add_argument(
        "--base-dir",
        type=Path,
        default=Path("."),
        help="Directory holding the clients/ build contexts and compose file",
    )
    parser.add_argument(
        "--results-dir",
        type=Path,
        default=Path("results"),
        help="Directory receiving test artifacts",
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="YAML file with the test cases to run (default: built-in catalog)",
    )
    parser.add_argument(
        "--metrics-timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for the builder's metrics endpoint",
    )
    parser.add_argument(
        "--backend",
        default="docker-compose",
        help="Environment backend key",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVELS[args.loglevel],
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    topology = TopologyConfig(metrics_timeout=args.metrics_timeout)
    backend_config = {
        "build": {"repo": args.repo, "branch": args.branch, "base_dir": args.base_dir},
        "builder": {"algo_type": args.algo},
        "topology": topology.model_dump(),
    }

    try:
        exit_code = asyncio.run(
            run(
                backend_key=args.backend,
                backend_config=backend_config,
                topology=topology,
                build_only_core=args.only_builder,
                results_dir=args.results_dir,
                catalog_path=args.catalog,
            )
        )
    except (BuilderTestsuiteError, FileNotFoundError) as e:
        print(e, file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        sys.exit(130)
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
