"""
Base strategy interface for dialect-specific behavior.

Each dialect registers a `DatabaseStrategy` subclass. The strategy knows how
to reach the database (URL, engine and pool arguments, per-connection
setup) and how to spell the few statements tagdb generates itself
(introspection, transaction control, INSERT variants).
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from tagdb.exceptions import UsageError
from tagdb.schema import ColumnInfo
from tagdb.sql import quote_identifier as sql_quote_identifier
from tagdb.sql import count_placeholders, standardize_placeholders

if TYPE_CHECKING:
    from tagdb.options import DatabaseOptions
    from tagdb.pool import Connection

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mysql')
        class MySQLStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for database-specific operations.
    """

    #: DBAPI paramstyle of the driver; `?` placeholders are rewritten to it
    paramstyle: str = 'qmark'

    #: Statement that opens an explicit transaction
    begin_statement: str = 'BEGIN'

    #: Whether a backslash escapes quotes inside string literals
    backslash_escapes: bool = False

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'mysql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters
        """

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return dialect-specific create_engine kwargs (e.g. connect_args).
        """

    @abstractmethod
    def configure_connection(self, dbapi_connection: Any) -> None:
        """Apply per-connection settings when the pool opens a connection.

        Every pooled connection runs in autocommit mode; transactions are
        opened explicitly with `begin_statement`.

        Args:
            dbapi_connection: The raw DBAPI connection
        """

    @abstractmethod
    def describe_table(self, conn: 'Connection', table: str) -> list[ColumnInfo]:
        """Introspect a table's columns in declaration order.

        Args:
            conn: Leased connection to run the introspection on
            table: Table name, optionally schema-qualified

        Returns
            list: ColumnInfo per column, empty if the table does not exist
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def get_pool_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return create_engine kwargs for a fixed-size QueuePool.

        `connection_limit` is a hard upper bound: no overflow connections.
        """
        return {
            'pool_size': options.connection_limit,
            'max_overflow': 0,
            'pool_timeout': options.pool_wait_timeout,
            'pool_recycle': options.pool_max_idle_time,
            'pool_pre_ping': options.pool_pre_ping,
            }

    def quote_identifier(self, identifier: str) -> str:
        """Quote a single identifier for this dialect.
        """
        return sql_quote_identifier(identifier, self.dialect_name)

    def quote_table(self, table: str) -> str:
        """Quote a possibly schema-qualified table name part by part.
        """
        return '.'.join(self.quote_identifier(part) for part in table.split('.'))

    def standardize_sql(self, sql: str) -> str:
        """Convert `?` placeholders to this dialect's paramstyle.
        """
        return standardize_placeholders(sql, self.paramstyle)

    def count_placeholders(self, sql: str) -> int:
        """Number of `?` placeholders under this dialect's literal rules.
        """
        return count_placeholders(sql, self.backslash_escapes)

    def insert_verb(self, replace: bool = False, ignore: bool = False) -> str:
        """Leading keywords of an INSERT statement.

        MySQL spelling by default: `INSERT`, `REPLACE`, `INSERT IGNORE`.

        Raises
            UsageError: If both replace and ignore are requested
        """
        if replace and ignore:
            raise UsageError("replace and ignore can't be combined")
        if replace:
            return 'REPLACE'
        return 'INSERT IGNORE' if ignore else 'INSERT'
