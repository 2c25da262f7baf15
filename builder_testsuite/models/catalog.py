"""Models for the ordered catalog of test cases."""

import os
from collections.abc import Sequence

from pydantic import Field, field_validator, model_validator

from builder_testsuite.artifacts import normalize_test_name
from builder_testsuite.models.base import Model

# Names end up in artifact filenames under the results directory
_FORBIDDEN_NAME_CHARS = frozenset({"/", os.sep, "\0"})


class TestCaseDefinition(Model):
    """A single named scenario to run against the builder."""

    __test__ = False

    id: int = Field(..., ge=0, description="Ordinal identifier, unique in a run")
    name: str = Field(..., min_length=1, description="Human-readable test name")
    description: str = Field(default="", description="Free-text description")

    @field_validator("name")
    @classmethod
    def _check_filesystem_safe(cls, name: str) -> str:
        if any(char in _FORBIDDEN_NAME_CHARS for char in name):
            raise ValueError(f"test name {name!r} must not contain path separators")
        if normalize_test_name(name) in {".", ".."}:
            raise ValueError(f"test name {name!r} is not a valid filename")
        return name


class TestCatalog(Model):
    """Ordered list of test case definitions executed by a run."""

    __test__ = False

    version: str = Field(default="1.0", description="Catalog schema version")
    tests: Sequence[TestCaseDefinition] = Field(
        default_factory=tuple, description="Test cases in execution order"
    )

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "TestCatalog":
        seen: set[int] = set()
        for test in self.tests:
            if test.id in seen:
                raise ValueError(f"duplicate test id {test.id} ({test.name!r})")
            seen.add(test.id)
        return self
