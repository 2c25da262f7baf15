"""Test catalog: the ordered list of test cases a run executes."""

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from builder_testsuite.exceptions import CatalogError
from builder_testsuite.models.catalog import TestCaseDefinition, TestCatalog

DEFAULT_TESTS: tuple[tuple[str, str], ...] = (
    (
        "Static Payload",
        "Start the builder with an idle chain and capture its baseline metrics.",
    ),
    (
        "Bundle Merging",
        "Let the builder merge bundles with the configured algorithm.",
    ),
    (
        "Empty Mempool",
        "Build blocks while no transactions are pending.",
    ),
)


def default_catalog() -> TestCatalog:
    """Return the catalog shipped with the test suite."""
    return TestCatalog(
        tests=[
            TestCaseDefinition(id=i, name=name, description=description)
            for i, (name, description) in enumerate(DEFAULT_TESTS)
        ]
    )


def parse_test_catalog(data: Any) -> TestCatalog:
    """Build a catalog from decoded YAML.

    Entries without an ``id`` get their position in the list.

    Raises:
        CatalogError: If the data does not describe a valid catalog.

    """
    if not isinstance(data, Mapping):
        raise CatalogError("Catalog must be a mapping with a 'tests' list")

    tests = data.get("tests") or []
    if not isinstance(tests, list):
        raise CatalogError("Catalog 'tests' must be a list")

    entries = [
        {"id": i, **entry} if isinstance(entry, Mapping) else entry
        for i, entry in enumerate(tests)
    ]
    try:
        return TestCatalog.model_validate({**data, "tests": entries})
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog: {e}") from e


async def load_test_catalog(path: Path) -> TestCatalog:
    """Load a catalog from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        CatalogError: If the file is not valid YAML or not a valid catalog.

    """
    content = await asyncio.to_thread(path.read_text)
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}") from e
    return parse_test_catalog(data)
