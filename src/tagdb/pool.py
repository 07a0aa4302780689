"""
Connection pool and leased connections.

SQLAlchemy owns pooling: `create_pool()` builds an engine whose QueuePool is
capped at `connection_limit`, and `Pool.get_connection()` checks a raw DBAPI
connection out of it. The `Connection` lease must be released exactly once,
which hands the DBAPI connection back to the pool:

    with pool.get_connection() as conn:
        result = conn.execute('SELECT * FROM users WHERE id = ?', (1,))

Statements use `?` placeholders; the dialect strategy rewrites them for the
driver just before execution.
"""
import logging
import time
from collections.abc import Callable, Sequence
from functools import wraps
from typing import Any, Self

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from tagdb.exceptions import UsageError
from tagdb.options import DatabaseOptions
from tagdb.sql import slice_sql
from tagdb.strategy import DatabaseStrategy, get_strategy
from tagdb.types import Field, Result

__all__ = [
    'Pool',
    'Connection',
    'create_pool',
]

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging statements, their timing and failures."""
    @wraps(func)
    def wrapper(self, sql: str, params: Sequence = (), *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL: {slice_sql(sql)} args: {len(params or ())}')
        try:
            return func(self, sql, params, *args, **kwargs)
        except Exception as err:
            logger.error(f'Error with query: {slice_sql(sql)}: {err}')
            raise
        finally:
            elapsed = time.time() - start
            self.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Connection:
    """Exclusive lease on one pooled DBAPI connection.

    Tracks call counts and execution time. `release()` returns the DBAPI
    connection to the pool; it is idempotent, and the lease is unusable
    afterwards.
    """

    def __init__(self, dbapi_connection: Any, strategy: DatabaseStrategy) -> None:
        self.dbapi_connection = dbapi_connection
        self.strategy = strategy
        self.calls = 0
        self.time = 0
        self.released = False

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.release()

    def __repr__(self) -> str:
        state = 'released' if self.released else 'leased'
        return f'<Connection {self.strategy.dialect_name} {state} at {id(self):#x}>'

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    @dumpsql
    def execute(self, sql: str, params: Sequence = ()) -> Result:
        """Execute one statement with positional `?` parameters.

        Returns
            Result with rows as dicts keyed by column name

        Raises
            UsageError: If the lease was released or the parameter count
                does not match the placeholders
        """
        if self.released:
            raise UsageError('Connection has already been released')

        params = tuple(params or ())
        expected = self.strategy.count_placeholders(sql)
        if expected != len(params):
            raise UsageError(f'Statement has {expected} placeholder(s) but {len(params)} parameter(s) were given')

        cursor = self.dbapi_connection.cursor()
        try:
            cursor.execute(self.strategy.standardize_sql(sql), params)
            fields = Field.from_cursor_description(cursor.description)
            rows = []
            if fields:
                names = [f.name for f in fields]
                rows = [dict(zip(names, row)) for row in cursor.fetchall()]
            return Result(rows=rows, fields=fields, rowcount=cursor.rowcount,
                          lastrowid=cursor.lastrowid)
        finally:
            cursor.close()

    def query(self, sql: str) -> Result:
        """Run a plain statement without parameters, e.g. COMMIT.
        """
        return self.execute(sql)

    def release(self) -> None:
        """Return the DBAPI connection to the pool.
        """
        if self.released:
            return
        self.released = True
        self.dbapi_connection.close()
        logger.debug(f'Connection released: {self.calls} queries in {self.time:.2f}s')


class Pool:
    """Bounded set of reusable connections backed by a SQLAlchemy engine.
    """

    def __init__(self, engine: Engine, strategy: DatabaseStrategy) -> None:
        self.engine = engine
        self.strategy = strategy

    def __repr__(self) -> str:
        return f'<Pool {self.strategy.dialect_name} {self.engine.pool.status()}>'

    @property
    def dialect(self) -> str:
        return self.strategy.dialect_name

    def get_connection(self) -> Connection:
        """Lease a connection, waiting up to `pool_wait_timeout` seconds.
        """
        return Connection(self.engine.raw_connection(), self.strategy)

    def close(self) -> None:
        """Close every pooled connection.
        """
        self.engine.dispose()
        logger.debug(f'Disposed pool for {self.dialect}')


def create_pool(options: DatabaseOptions,
                engine_factory: Callable[..., Engine] = sa.create_engine) -> Pool:
    """Create the connection pool described by `options`.

    Args:
        options: DatabaseOptions object
        engine_factory: Function to create engines (defaults to sqlalchemy.create_engine)

    Returns
        Pool: Pool whose connections are configured by the dialect strategy
    """
    strategy = get_strategy(options.drivername)
    url = strategy.build_connection_url(options)

    engine_kwargs: dict[str, Any] = {'echo': False}
    engine_kwargs.update(strategy.get_engine_kwargs(options))
    engine_kwargs.update(strategy.get_pool_kwargs(options))

    engine = engine_factory(url, **engine_kwargs)

    def on_connect(dbapi_connection, connection_record):
        strategy.configure_connection(dbapi_connection)

    sa.event.listen(engine, 'connect', on_connect)
    logger.debug(f'Created pool for {options.drivername} (limit {options.connection_limit})')

    return Pool(engine, strategy)
