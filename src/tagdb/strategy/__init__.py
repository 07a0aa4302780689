"""
Dialect registry: `mysql` and `sqlite` strategies register themselves on
import.
"""
from functools import lru_cache

from tagdb.strategy.base import _STRATEGY_REGISTRY
from tagdb.strategy.base import DatabaseStrategy as DatabaseStrategy
from tagdb.strategy.mysql import MySQLStrategy as MySQLStrategy
from tagdb.strategy.sqlite import SQLiteStrategy as SQLiteStrategy


def get_available_dialects() -> list[str]:
    return list(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Strategy class registered for `dialect`.

    Raises
        ValueError: If no strategy is registered under that name
    """
    if dialect not in _STRATEGY_REGISTRY:
        raise ValueError(f'Unsupported dialect: {dialect}. Available: {get_available_dialects()}')
    return _STRATEGY_REGISTRY[dialect]


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> DatabaseStrategy:
    """Shared strategy instance for `dialect`; strategies hold no state.
    """
    return get_strategy_class(dialect)()
