"""Tests for result models and run summary aggregation."""

import pytest

from builder_testsuite.models.result import RunSummary, TestResult
from builder_testsuite.testing.factories import (
    TestCaseDefinitionFactory,
    TestExecutionFactory,
)


def test_success_has_no_details() -> None:
    """Passing results carry no diagnostic."""
    result = TestResult.success()

    assert result.passed
    assert result.details == ""


def test_failure_keeps_details() -> None:
    """Failing results carry the diagnostic message."""
    result = TestResult.failure("no builder container found")

    assert not result.passed
    assert result.details == "no builder container found"


def test_execution_exposes_definition_name() -> None:
    """Execution name comes from its definition."""
    definition = TestCaseDefinitionFactory.build(name="Static Payload")
    execution = TestExecutionFactory.build(definition=definition)

    assert execution.name == "Static Payload"


@pytest.mark.parametrize(
    ("outcomes", "expected"),
    [
        ([], RunSummary(tests=0, tests_failed=0)),
        ([True], RunSummary(tests=1, tests_failed=0)),
        ([False], RunSummary(tests=1, tests_failed=1)),
        ([True, False, False, True], RunSummary(tests=4, tests_failed=2)),
    ],
)
def test_summary_counts_non_passing_executions(
    outcomes: list[bool], expected: RunSummary
) -> None:
    """Summary totals every execution and counts the ones that did not pass."""
    executions = [
        TestExecutionFactory.build(
            result=TestResult.success() if passed else TestResult.failure("boom")
        )
        for passed in outcomes
    ]

    assert RunSummary.from_executions(executions) == expected


def test_summary_rejects_more_failures_than_tests() -> None:
    """Failed count can never exceed the total."""
    with pytest.raises(ValueError, match="Invalid summary"):
        RunSummary(tests=1, tests_failed=2)
