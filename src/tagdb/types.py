"""
Result and value types shared across tagdb.
"""
import datetime
import decimal
from dataclasses import dataclass, field
from typing import Any, Final, Self

__all__ = [
    'Field',
    'Result',
    'UNDEFINED',
    'SCALAR_TYPES',
    'is_scalar',
]


class _Undefined:
    """Sentinel for a record field that is present but has no value.

    `TableAccessor.sanitize()` rewrites it to `None`.
    """

    _instance = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'UNDEFINED'

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return 'UNDEFINED'


UNDEFINED: Final = _Undefined()

SCALAR_TYPES = (
    str,
    int,
    float,
    bool,
    decimal.Decimal,
    datetime.date,
    datetime.datetime,
    datetime.time,
    datetime.timedelta,
    bytes,
    bytearray,
    )


def is_scalar(value: Any) -> bool:
    """True for values the drivers can bind to a single placeholder."""
    return value is None or isinstance(value, SCALAR_TYPES)


@dataclass(frozen=True, slots=True)
class Field:
    """Result column metadata taken from the cursor description."""
    name: str
    type_code: Any = None

    @classmethod
    def from_cursor_description(cls, description: Any) -> list[Self]:
        if not description:
            return []
        return [cls(name=item[0], type_code=item[1]) for item in description]


@dataclass(slots=True)
class Result:
    """Outcome of one executed statement.

    `rows` is empty and `fields` is empty for statements without a result
    set; `rowcount` and `lastrowid` come straight from the driver cursor.
    """
    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[Field] = field(default_factory=list)
    rowcount: int = -1
    lastrowid: Any = None

    def __iter__(self):
        yield self.rows
        yield self.fields

    def first(self) -> dict[str, Any] | None:
        """First row, or None for an empty result."""
        return self.rows[0] if self.rows else None
