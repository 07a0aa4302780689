"""
Database-specific exception classes.

Driver errors are never wrapped: they reach the caller exactly as the
driver raised them. `ExecutionError` groups them for `except` clauses.
"""
import sqlite3

import pymysql
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all tagdb errors.
    """


class UsageError(DatabaseError):
    """API called the wrong way, e.g. a plain string passed where a query
    expression is required.
    """


class ConfigurationError(DatabaseError):
    """Missing or invalid configuration for the requested operation.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class QueryError(DatabaseError):
    """Error in query construction or schema lookup.
    """


ExecutionError = (
    pymysql.MySQLError,
    sqlite3.Error,
    sa.exc.DBAPIError,
    QueryError,
    )

DbConnectionError = (
    pymysql.OperationalError,
    pymysql.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    sa.exc.TimeoutError,
    )

IntegrityError = (
    pymysql.IntegrityError,
    sqlite3.IntegrityError,
    )
