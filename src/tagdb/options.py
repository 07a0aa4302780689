import logging
from dataclasses import dataclass, fields
from typing import Any

from tagdb.exceptions import ConfigurationError
from tagdb.strategy import get_available_dialects, get_strategy_class
from tagdb.strategy import is_supported_dialect

__all__ = [
    'DatabaseOptions',
    'load_options',
]

logger = logging.getLogger(__name__)


@dataclass
class DatabaseOptions:
    """Options

    supported driver names: `mysql`, `sqlite`

    Connection pool options:
    - connection_limit: Fixed upper bound on leased connections (default: 500)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    - pool_max_idle_time: Seconds after which a connection is recycled (default: 300)
    - pool_pre_ping: Test connections on checkout (default: True)
    - schema_cache_size: Maximum number of cached table schemas (default: 1024)
    """
    drivername: str = 'mysql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    charset: str = 'utf8mb4'
    connection_limit: int = 500
    pool_wait_timeout: int = 30
    pool_max_idle_time: int = 300
    pool_pre_ping: bool = True
    schema_cache_size: int = 1024

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ConfigurationError(f'drivername must be one of: {available}')
        if self.connection_limit < 1:
            raise ConfigurationError('connection_limit must be at least 1')
        strategy_cls = get_strategy_class(self.drivername)
        try:
            strategy_cls.validate_options(self)
        except ValueError as err:
            raise ConfigurationError(str(err)) from err


def _option_values(source: Any) -> dict[str, Any]:
    """Read option values from a mapping or from attributes of an object.
    """
    if isinstance(source, DatabaseOptions):
        return {f.name: getattr(source, f.name) for f in fields(DatabaseOptions)}
    if isinstance(source, dict):
        return dict(source)
    names = {f.name for f in fields(DatabaseOptions)}
    return {name: getattr(source, name) for name in names if hasattr(source, name)}


def load_options(options: DatabaseOptions | dict[str, Any] | str | None = None,
                 config: Any | None = None, **kw: Any) -> DatabaseOptions:
    """Build `DatabaseOptions` from any of the supported sources.

    Args:
        options: Can be:
                - DatabaseOptions object (returned as-is when no overrides)
                - Dictionary of options
                - String naming an attribute of `config`
                - None, with everything given as keyword arguments
        config: Object or module holding named option sets
        **kw: Keyword arguments overriding individual options

    Raises
        ConfigurationError: If a named option set is missing or an option
            name is unknown
    """
    if isinstance(options, DatabaseOptions) and not kw:
        return options

    if isinstance(options, str):
        if config is None or not hasattr(config, options):
            raise ConfigurationError(f'No option set named {options!r} in config')
        values = _option_values(getattr(config, options))
    elif options is None:
        values = {}
    else:
        values = _option_values(options)

    values.update(kw)

    known = {f.name for f in fields(DatabaseOptions)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f'Unknown option(s): {unknown}')

    logger.debug(f"Loaded options for {values.get('drivername', 'mysql')}")
    return DatabaseOptions(**values)
