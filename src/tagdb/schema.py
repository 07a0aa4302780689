"""
Table schema metadata and the per-database schema cache.

Schemas are introspected once per table name and kept for the lifetime of
the owning `Database`. There is no invalidation: if a table is altered
while the database object is open, its cached schema is stale until the
database is closed and reconnected.
"""
import logging
import re
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import cachetools

__all__ = [
    'ColumnInfo',
    'TableSchema',
    'SchemaCache',
    'text_length_bound',
]

logger = logging.getLogger(__name__)

_BOUNDED_TEXT = re.compile(r'^\s*(?:national\s+)?(?:var)?char\s*\(\s*(\d+)\s*\)', re.IGNORECASE)


def text_length_bound(sql_type: str | None) -> int | None:
    """Declared length of a `varchar(n)`/`char(n)` type, None for other types.

    >>> text_length_bound('varchar(255)')
    255
    >>> text_length_bound('text') is None
    True
    """
    if not sql_type:
        return None
    match = _BOUNDED_TEXT.match(sql_type)
    return int(match.group(1)) if match else None


@dataclass(frozen=True, slots=True)
class ColumnInfo:
    """One column of an introspected table."""
    name: str
    sql_type: str
    primary_key: bool = False
    nullable: bool = True
    default: Any = None

    @property
    def max_length(self) -> int | None:
        return text_length_bound(self.sql_type)


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Ordered column metadata for a table."""
    table: str
    columns: tuple[ColumnInfo, ...]

    @property
    def field_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def primary_key(self) -> list[str]:
        return [col.name for col in self.columns if col.primary_key]

    def __contains__(self, name: object) -> bool:
        return any(col.name == name for col in self.columns)

    def __len__(self) -> int:
        return len(self.columns)


class SchemaCache:
    """Table name to `TableSchema` cache owned by one `Database`.

    The loader runs outside the lock, so two threads hitting an uncached
    table at once may both introspect it; the second result simply replaces
    the identical first one.
    """

    def __init__(self, maxsize: int = 1024) -> None:
        self._cache: cachetools.Cache = cachetools.Cache(maxsize=maxsize)
        self._lock = threading.RLock()

    def get(self, table: str) -> TableSchema | None:
        with self._lock:
            return self._cache.get(table)

    def set(self, table: str, schema: TableSchema) -> None:
        with self._lock:
            self._cache[table] = schema

    def get_or_load(self, table: str, loader: Callable[[str], TableSchema]) -> TableSchema:
        """Return the cached schema for `table`, introspecting it on first use.
        """
        schema = self.get(table)
        if schema is not None:
            logger.debug(f'Schema cache hit for {table}')
            return schema

        logger.debug(f'Schema cache miss for {table}')
        schema = loader(table)
        self.set(table, schema)
        return schema

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def __contains__(self, table: object) -> bool:
        with self._lock:
            return table in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
