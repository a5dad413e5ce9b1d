"""Row materialization with an explicit NULL / value / absent distinction.

A result row is flattened into a RowMap: an ordered mapping from column name to
a RowValue, which is either the NULL sentinel (column present, SQL NULL) or a
Value wrapping the driver's native object. A column that was never read is not
in the map at all.

NULL never turns into an empty string, zero or an empty object. It compares
equal to None only, is falsy, and serializes as JSON ``null``:

    >>> row = materialize_row(["id", "age"], [1, None])
    >>> row["age"] is NULL
    True
    >>> row.to_json()
    '{"id": 1, "age": null}'
"""
from __future__ import annotations

import base64
import json
import math
import uuid
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Generic, Protocol, TypeVar, Union

from pgharness.errors import DuplicateColumnError, NullRepresentationViolation

T = TypeVar("T")


class NullType:
    """Singleton marking a column that is present and holds SQL NULL."""

    __slots__ = ()
    _instance: NullType | None = None

    def __new__(cls) -> NullType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NULL"

    def __bool__(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return other is None or other is self

    def __ne__(self, other: object) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash(None)

    def __reduce__(self) -> tuple[type[NullType], tuple[()]]:
        return (NullType, ())


NULL = NullType()


@dataclass(frozen=True)
class Value(Generic[T]):
    """A present, non-NULL column value in the driver's native type."""

    raw: T

    def __post_init__(self) -> None:
        if self.raw is None or self.raw is NULL:
            raise ValueError("Value cannot wrap NULL; use the NULL sentinel instead")


RowValue = Union[NullType, Value[Any]]


def to_row_value(raw: Any) -> RowValue:
    """Tag a raw driver value. ``None`` is the driver's NULL indicator."""
    if raw is None or raw is NULL:
        return NULL
    return Value(raw)


class RowMap(Mapping[str, RowValue]):
    """Read-only, column-ordered mapping of one materialized row.

    Absent columns are simply missing: ``name in row`` is False and
    ``row[name]`` raises KeyError.
    """

    __slots__ = ("_values",)

    def __init__(self, items: Iterable[tuple[str, RowValue]] = ()) -> None:
        values: dict[str, RowValue] = {}
        for name, value in items:
            if name in values:
                raise DuplicateColumnError(name)
            if not isinstance(value, (NullType, Value)):
                raise TypeError(
                    f"Column {name!r} must hold NULL or a Value, got {type(value).__name__}"
                )
            values[name] = value
        self._values = values

    def __getitem__(self, name: str) -> RowValue:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        inner = ", ".join(f"{name!r}: {value!r}" for name, value in self._values.items())
        return f"RowMap({{{inner}}})"

    def is_null(self, name: str) -> bool:
        """True if the column is present and NULL. Raises KeyError if absent."""
        return self._values[name] is NULL

    def raw(self, name: str) -> Any:
        """The column's native value, or None for NULL. Raises KeyError if absent."""
        value = self._values[name]
        if value is NULL:
            return None
        return value.raw  # type: ignore[union-attr]

    def to_plain(self) -> dict[str, Any]:
        """Ordered plain dict with NULL mapped to None."""
        return {name: self.raw(name) for name in self._values}

    def to_json(self, **kwargs: Any) -> str:
        """Serialize the row as a JSON object; NULL columns become ``null``."""
        return json.dumps(_json_ready(self), default=json_default, **kwargs)


_NON_FINITE_FLOATS = {"nan": "NaN", "inf": "Infinity", "-inf": "-Infinity"}


def _json_ready(row: RowMap) -> dict[str, Any]:
    """Plain dict safe for strict JSON: non-finite floats become PostgreSQL's spelling."""
    plain = row.to_plain()
    for name, raw in plain.items():
        if isinstance(raw, float) and not math.isfinite(raw):
            plain[name] = _NON_FINITE_FLOATS[repr(raw)]
    return plain


def json_default(value: Any) -> Any:
    """``json.dumps`` hook for the driver types PostgreSQL hands back."""
    if value is NULL:
        return None
    if isinstance(value, Value):
        return value.raw
    if isinstance(value, Decimal):
        # exact digits, never via float
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps_rows(rows: Iterable[RowMap], **kwargs: Any) -> str:
    """Serialize materialized rows as a JSON array of objects."""
    return json.dumps([_json_ready(row) for row in rows], default=json_default, **kwargs)


# ---------------------------------------------------------------------------
# Materialization
# ---------------------------------------------------------------------------


class ResultCursor(Protocol):
    """What materialize() needs from a result: column names and row iteration.

    SQLAlchemy's ``Result`` / ``CursorResult`` satisfy this.
    """

    def keys(self) -> Iterable[str]: ...

    def __iter__(self) -> Iterator[Sequence[Any]]: ...


def materialize_row(names: Sequence[str], values: Sequence[Any]) -> RowMap:
    """Build a RowMap from column names and raw values matched by ordinal.

    A row shorter than ``names`` leaves the trailing columns absent.
    """
    return RowMap((name, to_row_value(raw)) for name, raw in zip(names, values))


def materialize(result: ResultCursor) -> Iterator[RowMap]:
    """Lazily convert each row of ``result`` into a RowMap.

    The cursor is consumed once; iterating a drained result yields nothing.

    Raises:
        DuplicateColumnError: The result reports the same column name twice.
    """
    names = list(result.keys())
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateColumnError(name)
        seen.add(name)

    for row in result:
        yield materialize_row(names, row)


def materialize_all(result: ResultCursor) -> list[RowMap]:
    return list(materialize(result))


# ---------------------------------------------------------------------------
# Invariant checks
# ---------------------------------------------------------------------------

_MISSING = object()


def check_null_preserved(row: RowMap, payload: str | bytes | Mapping[str, Any]) -> None:
    """Assert every NULL column of ``row`` serialized to the null token.

    Args:
        row: The materialized row the payload was produced from.
        payload: JSON text, or the already-decoded JSON object.

    Raises:
        NullRepresentationViolation: A NULL column decoded to anything but None,
            or a column present in ``row`` disappeared from the payload.
    """
    decoded = json.loads(payload) if isinstance(payload, (str, bytes)) else payload
    if not isinstance(decoded, Mapping):
        raise TypeError(f"Expected a JSON object, got {type(decoded).__name__}")

    for name, value in row.items():
        observed = decoded.get(name, _MISSING)
        if observed is _MISSING:
            raise NullRepresentationViolation(name, "<missing>", present=True)
        if value is not NULL:
            continue
        if observed is not None:
            raise NullRepresentationViolation(name, observed)
