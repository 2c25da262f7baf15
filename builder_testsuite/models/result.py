"""Models for test execution results and run aggregation."""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from builder_testsuite.models.catalog import TestCaseDefinition


@dataclass(frozen=True, kw_only=True)
class TestResult:
    """Outcome of a single test case.

    A passing result carries no payload. A failing one carries the
    stringified cause in ``details``.
    """

    __test__ = False

    passed: bool
    details: str = ""

    @classmethod
    def success(cls) -> Self:
        """Create a passing result."""
        return cls(passed=True)

    @classmethod
    def failure(cls, details: str) -> Self:
        """Create a failing result with a diagnostic message."""
        return cls(passed=False, details=details)


@dataclass(frozen=True, kw_only=True)
class TestExecution:
    """A test case definition paired with its finalized result."""

    __test__ = False

    definition: TestCaseDefinition
    result: TestResult
    duration: float = 0.0
    artifact_path: Path | None = None

    @property
    def name(self) -> str:
        """Display name of the executed test case."""
        return self.definition.name


@dataclass(frozen=True, kw_only=True)
class RunSummary:
    """Aggregate counts over every execution of a run."""

    tests: int = 0
    tests_failed: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.tests_failed <= self.tests:
            raise ValueError(
                f"Invalid summary: {self.tests_failed} failed of {self.tests}"
            )

    @classmethod
    def from_executions(cls, executions: Sequence[TestExecution]) -> Self:
        """Count executions and the ones that did not pass."""
        return cls(
            tests=len(executions),
            tests_failed=sum(1 for e in executions if not e.result.passed),
        )


@dataclass(frozen=True, kw_only=True)
class RunReport:
    """Everything a finished run produced, in catalog order."""

    executions: Sequence[TestExecution]
    summary: RunSummary
