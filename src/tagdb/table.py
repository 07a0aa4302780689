"""
Per-table insert/update helpers driven by introspected schema metadata.

A `TableAccessor` is obtained from `Database.table(name)`. It only ever
looks at record keys that name a column of the table; other keys are
ignored. Statements are assembled directly from the schema and executed
through `Database.run()`, one statement per call.
"""
import logging
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from tagdb.exceptions import ConfigurationError, ValidationError
from tagdb.schema import ColumnInfo, TableSchema
from tagdb.sql import make_placeholders
from tagdb.types import UNDEFINED, Result, is_scalar

if TYPE_CHECKING:
    from tagdb.client import Database

__all__ = ['TableAccessor', 'SanitizeWarning']

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SanitizeWarning:
    """Correction made by `TableAccessor.sanitize()` to one record field."""
    row: int
    field: str
    message: str


def _as_records(data: Any) -> list[Mapping[str, Any]]:
    """Coerce one record or a sequence of records to a list."""
    if data is None:
        return []
    if isinstance(data, Mapping):
        return [data]
    if isinstance(data, Sequence) and not isinstance(data, str | bytes):
        for i, record in enumerate(data):
            if not isinstance(record, Mapping):
                raise ValidationError(f'Record {i} must be a mapping, not {type(record).__name__}')
        return list(data)
    raise ValidationError(f'Expected a record or a sequence of records, not {type(data).__name__}')


class TableAccessor:
    """Insert, update and sanitize records for one table.
    """

    def __init__(self, db: 'Database', schema: TableSchema) -> None:
        self.db = db
        self.schema = schema

    def __repr__(self) -> str:
        return f'<TableAccessor {self.name} ({len(self.schema)} columns)>'

    @property
    def name(self) -> str:
        return self.schema.table

    @property
    def columns(self) -> tuple[ColumnInfo, ...]:
        return self.schema.columns

    @property
    def primary_key(self) -> list[str]:
        return self.schema.primary_key

    def _quote(self, identifier: str) -> str:
        return self.db.strategy.quote_identifier(identifier)

    def _check_value(self, field: str, value: Any, row: int | None = None) -> None:
        """Reject values the driver could not bind to one placeholder."""
        where = f'{field!r}' if row is None else f'{field!r} in record {row}'
        if value is UNDEFINED:
            raise ValidationError(f'Value of {where} is undefined; sanitize() the data first')
        if not is_scalar(value):
            raise ValidationError(f'Value of {where} has unsupported type {type(value).__name__}')

    def insert(self, data: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None,
               replace: bool = False, ignore: bool = False) -> Result | None:
        """Insert one or more records in a single multi-row statement.

        Every column of the table is written; a column missing from a record
        is written as NULL. Returns None without touching the database when
        there is nothing to insert.

        Args:
            data: A record or a sequence of records
            replace: Use REPLACE instead of INSERT
            ignore: Skip rows that violate unique constraints
        """
        records = _as_records(data)
        if not records:
            logger.debug(f'Skipping insert of empty rows into {self.name}')
            return None

        verb = self.db.strategy.insert_verb(replace=replace, ignore=ignore)
        field_names = self.schema.field_names

        values = []
        for i, record in enumerate(records):
            for field in field_names:
                value = record.get(field)
                self._check_value(field, value, i)
                values.append(value)

        row_str = f'({make_placeholders(len(field_names))})'
        quoted_table = self.db.strategy.quote_table(self.name)
        quoted_cols = ','.join(self._quote(field) for field in field_names)
        sql = f"{verb} INTO {quoted_table} ({quoted_cols}) VALUES {','.join([row_str] * len(records))}"

        logger.debug(f'Inserting {len(records)} row(s) into {self.name}')
        return self.db.run(sql, values)

    def update(self, record: Mapping[str, Any],
               filter: Mapping[str, Any] | None = None) -> Result:
        """Update the columns present in `record`.

        Without a filter, rows are matched on the table's primary key using
        the key values taken from `record`, and key columns are not part of
        the SET list.

        Raises
            ConfigurationError: If no filter is given and the table has no
                primary key
            ValidationError: If a key value is missing, a filter names an
                unknown column, or no column is left to set
        """
        if not isinstance(record, Mapping):
            raise ValidationError(f'Record must be a mapping, not {type(record).__name__}')

        if filter is None:
            primary_key = self.schema.primary_key
            if not primary_key:
                raise ConfigurationError(f'No filter provided and table {self.name} has no primary key')
            missing = [field for field in primary_key if field not in record]
            if missing:
                raise ValidationError(f'Record is missing primary key field(s) {missing} of {self.name}')
            filter = {field: record[field] for field in primary_key}
            skip = set(primary_key)
        else:
            if not filter:
                raise ValidationError('Filter must name at least one column')
            unknown = [field for field in filter if field not in self.schema]
            if unknown:
                raise ValidationError(f'Filter names unknown column(s) {unknown} of {self.name}')
            skip = set()

        changes = []
        values = []
        for field in self.schema.field_names:
            if field in record and field not in skip:
                self._check_value(field, record[field])
                changes.append(f'{self._quote(field)} = ?')
                values.append(record[field])

        if not changes:
            raise ValidationError(f'Record has no column of {self.name} to update')

        conditions = []
        for field, value in filter.items():
            self._check_value(field, value)
            conditions.append(f'{self._quote(field)} = ?')
            values.append(value)

        sql = f"UPDATE {self.db.strategy.quote_table(self.name)} SET {', '.join(changes)} WHERE {' AND '.join(conditions)}"
        return self.db.run(sql, values)

    def sanitize(self, data: MutableMapping[str, Any] | Sequence[MutableMapping[str, Any]] | None
                 ) -> list[SanitizeWarning]:
        """Correct records in place before inserting them.

        - A column present with the `UNDEFINED` value is set to None.
        - A string longer than its `varchar(n)`/`char(n)` column is cut to
          `n` characters.

        Each correction is reported as a `SanitizeWarning`; nothing is
        executed against the database.
        """
        warnings: list[SanitizeWarning] = []

        for i, datum in enumerate(_as_records(data)):
            for column in self.schema.columns:
                field = column.name

                if field in datum and datum[field] is UNDEFINED:
                    warnings.append(SanitizeWarning(row=i, field=field, message='was undefined'))
                    datum[field] = None

                length = column.max_length
                value = datum.get(field)
                if length is not None and isinstance(value, str) and len(value) > length:
                    warnings.append(SanitizeWarning(
                        row=i, field=field,
                        message=f'exceeded length ({len(value)} > {length})'))
                    datum[field] = value[:length]

        if warnings:
            logger.debug(f'Sanitized {len(warnings)} field(s) for {self.name}')
        return warnings
