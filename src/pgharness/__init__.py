"""Integration-test harness for an ephemeral PostgreSQL container.

Provides:
- PostgresContainerFixture: start-once / share / dispose-once container lifecycle
- materialize(): result rows flattened into RowMaps that keep SQL NULL,
  concrete values and absent columns distinguishable, including through JSON
"""
from __future__ import annotations

from pgharness.config import ContainerSettings
from pgharness.errors import (
    DatabaseConnectionError,
    DuplicateColumnError,
    FixtureStateError,
    HarnessError,
    NullRepresentationViolation,
    ProvisioningError,
)
from pgharness.fixture import LifecycleState, PostgresContainerFixture
from pgharness.rows import (
    NULL,
    NullType,
    RowMap,
    RowValue,
    Value,
    check_null_preserved,
    dumps_rows,
    materialize,
    materialize_all,
    materialize_row,
)

__all__ = [
    "NULL",
    "ContainerSettings",
    "DatabaseConnectionError",
    "DuplicateColumnError",
    "FixtureStateError",
    "HarnessError",
    "LifecycleState",
    "NullRepresentationViolation",
    "NullType",
    "PostgresContainerFixture",
    "ProvisioningError",
    "RowMap",
    "RowValue",
    "Value",
    "check_null_preserved",
    "dumps_rows",
    "materialize",
    "materialize_all",
    "materialize_row",
]
