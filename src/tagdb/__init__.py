"""
Thin data-access layer over a MySQL or SQLite connection pool.

- Templated queries: `db(query)`, `db.query(query)`, `db.get(query)`
- Raw statements: `db.run(sql, params)` with `?` placeholders
- Transactions: `db.transaction(fn)` or `with db.transaction() as conn:`
- Table helpers: `db.table(name).insert/update/sanitize`
"""
__version__ = '0.1.0'

from tagdb.client import Database, connect
from tagdb.exceptions import ConfigurationError, DatabaseError
from tagdb.exceptions import DbConnectionError, ExecutionError, IntegrityError
from tagdb.exceptions import QueryError, UsageError, ValidationError
from tagdb.options import DatabaseOptions
from tagdb.pool import Connection, Pool, create_pool
from tagdb.query import CompiledQuery, Param, Query, Text, param, sql
from tagdb.schema import ColumnInfo, SchemaCache, TableSchema
from tagdb.table import SanitizeWarning, TableAccessor
from tagdb.transaction import Transaction
from tagdb.types import UNDEFINED, Field, Result

__all__ = [
    'connect',
    'Database',
    'DatabaseOptions',
    'Pool',
    'Connection',
    'create_pool',
    'Transaction',
    'TableAccessor',
    'SanitizeWarning',
    'TableSchema',
    'ColumnInfo',
    'SchemaCache',
    'Query',
    'CompiledQuery',
    'Text',
    'Param',
    'sql',
    'param',
    'Result',
    'Field',
    'UNDEFINED',
    'DatabaseError',
    'UsageError',
    'ConfigurationError',
    'ValidationError',
    'QueryError',
    'ExecutionError',
    'DbConnectionError',
    'IntegrityError',
]
