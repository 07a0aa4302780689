"""
MySQL-specific strategy implementation (PyMySQL driver).

- `format` paramstyle: `?` placeholders become `%s`, literal `%` doubled
- Backtick identifier quoting
- Schema introspection with DESCRIBE
- Connections run with autocommit on; transactions use START TRANSACTION
"""
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from tagdb.schema import ColumnInfo
from tagdb.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from tagdb.options import DatabaseOptions
    from tagdb.pool import Connection


def _text(value: Any) -> Any:
    if isinstance(value, bytes | bytearray):
        return value.decode()
    return value


@register_strategy('mysql')
class MySQLStrategy(DatabaseStrategy):
    """MySQL-specific operations.
    """

    paramstyle = 'format'
    begin_statement = 'START TRANSACTION'
    backslash_escapes = True

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for MySQL."""
        return 'mysql'

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for MySQL connections."""
        return ['hostname', 'username', 'database']

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for MySQL via PyMySQL."""
        return sa.URL.create(
            drivername='mysql+pymysql',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query={'charset': options.charset},
        )

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for MySQL."""
        connect_args: dict[str, Any] = {'autocommit': True}
        if options.timeout:
            connect_args['connect_timeout'] = options.timeout
        return {'connect_args': connect_args}

    def configure_connection(self, dbapi_connection: Any) -> None:
        """Configure connection settings for MySQL.
        """
        dbapi_connection.autocommit(True)

    def describe_table(self, conn: 'Connection', table: str) -> list[ColumnInfo]:
        """Introspect columns with DESCRIBE.

        DESCRIBE reports `Field`, `Type`, `Null`, `Key`, `Default`, `Extra`;
        `Key == 'PRI'` marks primary key columns.
        """
        result = conn.execute(f'DESCRIBE {self.quote_table(table)}')
        return [
            ColumnInfo(
                name=_text(row['Field']),
                sql_type=_text(row['Type']),
                primary_key=_text(row['Key']) == 'PRI',
                nullable=_text(row['Null']) == 'YES',
                default=row['Default'],
            )
            for row in result.rows
        ]
