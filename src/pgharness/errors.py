"""Exception hierarchy for the PostgreSQL container harness.

Propagation policy:
- ProvisioningError aborts the whole test session (the container never came up).
- DatabaseConnectionError fails only the test that asked for the connection.
- NullRepresentationViolation is an assertion failure over data that was
  already materialized, so it subclasses AssertionError.
"""
from __future__ import annotations


class HarnessError(Exception):
    """Base class for all harness errors."""


class ProvisioningError(HarnessError):
    """The container engine could not start the database image."""


class DatabaseConnectionError(HarnessError, ConnectionError):
    """A connection to the running container could not be opened."""


class FixtureStateError(HarnessError, RuntimeError):
    """A lifecycle operation was called in a state that does not allow it."""


class DuplicateColumnError(HarnessError, ValueError):
    """A result set reported the same column name more than once."""

    def __init__(self, column: str) -> None:
        super().__init__(f"Column {column!r} appears more than once in the result set")
        self.column = column


class NullRepresentationViolation(AssertionError):
    """A SQL NULL collapsed into a concrete value, or a present column was dropped, during serialization."""

    def __init__(self, column: str, observed: object, *, present: bool = False) -> None:
        if present:
            message = f"Column {column!r} is present in the row but missing from the payload"
        else:
            message = f"Column {column!r} is SQL NULL but serialized as {observed!r}"
        super().__init__(message)
        self.column = column
        self.observed = observed
