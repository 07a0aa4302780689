"""
SQLite-specific strategy implementation.

This module implements the DatabaseStrategy interface with SQLite-specific operations:
- Native `?` placeholders
- Metadata retrieval using PRAGMA table_info
- `INSERT OR IGNORE` in place of MySQL's `INSERT IGNORE`
- In-memory databases share one connection through a StaticPool
"""
import sqlite3
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from sqlalchemy.pool import StaticPool
from tagdb.exceptions import UsageError
from tagdb.schema import ColumnInfo
from tagdb.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from tagdb.options import DatabaseOptions
    from tagdb.pool import Connection


MEMORY = ':memory:'


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    paramstyle = 'qmark'
    begin_statement = 'BEGIN'

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        connect_args: dict[str, Any] = {
            'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            'check_same_thread': False,
        }
        if options.timeout:
            connect_args['timeout'] = options.timeout
        return {'connect_args': connect_args}

    def get_pool_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """An in-memory database exists only inside its one connection.
        """
        if options.database == MEMORY:
            return {'poolclass': StaticPool}
        return super().get_pool_kwargs(options)

    def configure_connection(self, dbapi_connection: Any) -> None:
        """Configure connection settings for SQLite.
        """
        dbapi_connection.isolation_level = None
        dbapi_connection.execute('PRAGMA foreign_keys = ON')

    def describe_table(self, conn: 'Connection', table: str) -> list[ColumnInfo]:
        """Introspect columns with PRAGMA table_info.

        `pk` is the 1-based position within the primary key, 0 otherwise.
        A schema qualifier goes in front of the pragma name:
        `PRAGMA "main".table_info("users")`.
        """
        schema, _, name = table.rpartition('.')
        prefix = f'{self.quote_identifier(schema)}.' if schema else ''
        result = conn.execute(f'PRAGMA {prefix}table_info({self.quote_identifier(name)})')
        return [
            ColumnInfo(
                name=row['name'],
                sql_type=row['type'] or '',
                primary_key=bool(row['pk']),
                nullable=not row['notnull'],
                default=row['dflt_value'],
            )
            for row in sorted(result.rows, key=lambda row: row['cid'])
        ]

    def insert_verb(self, replace: bool = False, ignore: bool = False) -> str:
        """SQLite spells the variants `REPLACE` and `INSERT OR IGNORE`.
        """
        if replace and ignore:
            raise UsageError("replace and ignore can't be combined")
        if replace:
            return 'REPLACE'
        return 'INSERT OR IGNORE' if ignore else 'INSERT'
