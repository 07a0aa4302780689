"""
Transaction handling for database operations.
"""
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from tagdb.pool import Connection

if TYPE_CHECKING:
    from tagdb.pool import Pool

__all__ = ['Transaction', 'run_transaction']

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Transaction:
    """Context manager holding one dedicated connection for a transaction.

    The connection is opened with the dialect's begin statement, committed
    when the block exits normally and rolled back when it raises. Either
    way the connection goes back to the pool and any exception propagates
    unchanged.

    Examples
        with Transaction(pool) as conn:
            conn.execute('DELETE FROM orders WHERE user_id = ?', (7,))
            conn.execute('DELETE FROM users WHERE id = ?', (7,))
    """

    def __init__(self, pool: 'Pool') -> None:
        self.pool = pool
        self.connection: Connection | None = None

    def __enter__(self) -> Connection:
        if self.connection is not None:
            raise RuntimeError('Nested transactions are not supported')

        conn = self.pool.get_connection()
        try:
            conn.query(self.pool.strategy.begin_statement)
        except BaseException:
            self._rollback(conn)
            conn.release()
            raise

        self.connection = conn
        logger.debug(f'Started transaction on {conn!r}')
        return conn

    def __exit__(self, exc_type: type | None, value: BaseException | None,
                 traceback: Any | None) -> None:
        conn, self.connection = self.connection, None
        try:
            if exc_type is not None:
                self._rollback(conn)
                return
            try:
                conn.query('COMMIT')
            except BaseException:
                self._rollback(conn)
                raise
            logger.debug(f'Committed transaction on {conn!r}')
        finally:
            conn.release()

    @staticmethod
    def _rollback(conn: Connection) -> None:
        """Roll back; a failure here is logged so the original error wins."""
        logger.warning('Rolling back the current transaction')
        try:
            conn.query('ROLLBACK')
        except Exception as err:
            logger.error(f'Rollback failed: {err}')


def run_transaction(pool: 'Pool', fn: Callable[[Connection], T]) -> T:
    """Run `fn(connection)` inside a transaction and return its result.
    """
    with Transaction(pool) as conn:
        return fn(conn)
