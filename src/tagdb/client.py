"""
The `Database` client and `connect()`.

    db = tagdb.connect(drivername='mysql', hostname='localhost',
                       username='app', password='secret', database='shop')

    rows = db(['SELECT * FROM users WHERE id IN (', ')'], [1, 2, 3]).rows
    user = db.get(sql('SELECT * FROM users WHERE email = ', param(email)))
    db.run('DELETE FROM sessions WHERE expires < ?', [now])

    users = db.table('users')
    users.insert([{'id': 1, 'name': 'a'}, {'id': 2, 'name': 'b'}])
    users.update({'id': 1, 'name': 'x'})

    db.transaction(lambda conn: conn.execute('UPDATE ...', (...)))
    db.close()
"""
import logging
from collections.abc import Callable, Sequence
from typing import Any, Self, TypeVar

from tagdb.exceptions import QueryError, UsageError
from tagdb.options import DatabaseOptions, load_options
from tagdb.pool import Connection, Pool, create_pool
from tagdb.query import build_query
from tagdb.schema import SchemaCache, TableSchema
from tagdb.strategy import DatabaseStrategy
from tagdb.table import TableAccessor
from tagdb.transaction import Transaction, run_transaction
from tagdb.types import Result

__all__ = ['Database', 'connect']

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Database:
    """Query helpers over a connection pool.

    Calling the object runs a templated query, see `query()`. Every call
    leases its own connection and releases it before returning, whether
    the statement succeeded or not.
    """

    def __init__(self, pool: Pool, options: DatabaseOptions | None = None,
                 schema_cache: SchemaCache | None = None) -> None:
        self.pool = pool
        self.options = options
        if schema_cache is None:
            schema_cache = SchemaCache(options.schema_cache_size if options else 1024)
        self.schema_cache = schema_cache
        self.closed = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __repr__(self) -> str:
        state = 'closed' if self.closed else 'open'
        return f'<Database {self.dialect} {state}>'

    def __call__(self, *template: Any) -> Result:
        return self.query(*template)

    def _check_open(self) -> None:
        if self.closed:
            raise UsageError('Database is closed')

    @property
    def strategy(self) -> DatabaseStrategy:
        return self.pool.strategy

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name

    def run(self, sql: str, params: Sequence[Any] = ()) -> Result:
        """Execute raw SQL with positional `?` parameters.

        Raises
            UsageError: If `sql` is not a string or the database is closed
        """
        self._check_open()
        if not isinstance(sql, str):
            raise UsageError('syntax is db(query), not db.run(query)')

        with self.pool.get_connection() as conn:
            return conn.execute(sql, params)

    def query(self, *template: Any) -> Result:
        """Compile a query expression and execute it.

        Accepts a `Query` built with `sql()`/`Query.template()`, or literal
        fragments followed by the values that go between them:

            db.query(['SELECT * FROM t WHERE a = ', ' AND b IN (', ')'], 1, [2, 3])

        Raises
            UsageError: If given a plain SQL string; use `run()` for that
        """
        compiled = build_query(template).compile()
        return self.run(compiled.sql, compiled.params)

    def get(self, *template: Any) -> dict[str, Any] | None:
        """Run `query()` and return the first row, or None if there is none.
        """
        return self.query(*template).first()

    def _describe(self, table: str) -> TableSchema:
        with self.pool.get_connection() as conn:
            columns = self.strategy.describe_table(conn, table)
        if not columns:
            raise QueryError(f"Table '{table}' doesn't exist")
        return TableSchema(table=table, columns=tuple(columns))

    def table(self, name: str) -> TableAccessor:
        """Accessor for `name`; its schema is introspected on first use only.
        """
        self._check_open()
        schema = self.schema_cache.get_or_load(name, self._describe)
        return TableAccessor(self, schema)

    def transaction(self, fn: Callable[[Connection], T] | None = None) -> T | Transaction:
        """Run `fn(connection)` in a transaction, or return the context manager.

        With `fn`, one connection is leased, the transaction begun, `fn`
        called with the raw connection, and COMMIT issued on success or
        ROLLBACK on any error (which is re-raised). Returns `fn`'s result.

        Without `fn`, returns a `Transaction` for use in a `with` block.
        """
        self._check_open()
        if fn is None:
            return Transaction(self.pool)
        return run_transaction(self.pool, fn)

    def close(self) -> None:
        """Dispose of the pool and forget cached schemas.
        """
        if self.closed:
            return
        self.closed = True
        self.pool.close()
        self.schema_cache.clear()
        logger.debug(f'Closed {self.dialect} database')


def connect(options: DatabaseOptions | dict[str, Any] | str | None = None,
            config: Any | None = None, **kw: Any) -> Database:
    """Create a pool and return a `Database` over it.

    Args:
        options: DatabaseOptions, a dict of options, or the name of an
            option set on `config`
        config: Object or module holding named option sets
        **kw: Additional keyword arguments to override options

    Returns
        Database: Client over a freshly created pool
    """
    options = load_options(options, config, **kw)
    return Database(create_pool(options), options)
