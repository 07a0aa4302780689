"""
SQL text utilities.

Statements are written with `?` placeholders everywhere in tagdb. This
module converts them to the driver's paramstyle, quotes identifiers and
produces the short statement slices used in log messages:

- `standardize_placeholders()` - Convert `?` to the dialect's marker
- `count_placeholders()` - Count `?` markers outside literals and comments
- `quote_identifier()` - Quote table/column names
- `make_placeholders()` - Build `?,?,?` lists
- `slice_sql()` - Whitespace-collapsed, length-capped statement for logs
"""
import re

__all__ = [
    'standardize_placeholders',
    'count_placeholders',
    'quote_identifier',
    'make_placeholders',
    'slice_sql',
]

# Literals, quoted identifiers and comments are matched first so that a `?`
# or `%` inside them is never mistaken for a placeholder. MySQL reads `\` as
# an escape inside string literals and `#` as a comment.
_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^'\\]|\\.|'')*'|"(?:[^"\\]|\\.|"")*")
    |(?P<ident>`(?:[^`]|``)*`)
    |(?P<comment>--[^\n]*|\#[^\n]*|/\*.*?\*/)
    |(?P<qmark>\?)
    |(?P<percent>%)
""", re.VERBOSE | re.DOTALL)

# SQLite follows standard SQL: quotes are escaped only by doubling them.
_TOKENIZE_STANDARD = re.compile(r"""
    (?P<string>'(?:[^']|'')*')
    |(?P<ident>"(?:[^"]|"")*"|`(?:[^`]|``)*`|\[[^\]]*\])
    |(?P<comment>--[^\n]*|/\*.*?\*/)
    |(?P<qmark>\?)
    |(?P<percent>%)
""", re.VERBOSE | re.DOTALL)

_WHITESPACE = re.compile(r'\s+')

SLICE_LENGTH = 100


def standardize_placeholders(sql: str, paramstyle: str = 'qmark') -> str:
    """Rewrite `?` placeholders for the driver's paramstyle.

    `qmark` drivers (sqlite3) get the statement unchanged. `format` and
    `pyformat` drivers (PyMySQL) interpolate with `%`, so every `?` becomes
    `%s` and every literal `%` is doubled, including those inside string
    literals and comments.

    Parameters
        sql: SQL statement using `?` placeholders
        paramstyle: DBAPI paramstyle of the target driver

    Returns
        SQL ready for the driver's execute()
    """
    if paramstyle == 'qmark' or not sql:
        return sql

    if paramstyle not in {'format', 'pyformat'}:
        raise ValueError(f'Unsupported paramstyle: {paramstyle}')

    def replace(match):
        if match.group('qmark'):
            return '%s'
        return match.group(0).replace('%', '%%')

    return _TOKENIZE.sub(replace, sql)


def count_placeholders(sql: str, backslash_escapes: bool = True) -> int:
    """Count `?` placeholders that are not inside literals or comments.

    Parameters
        sql: SQL statement using `?` placeholders
        backslash_escapes: Whether `\\` escapes a quote inside string
            literals, as in MySQL; SQLite literals have no escapes
    """
    if not sql or '?' not in sql:
        return 0
    tokenize = _TOKENIZE if backslash_escapes else _TOKENIZE_STANDARD
    return sum(1 for match in tokenize.finditer(sql) if match.group('qmark'))


def quote_identifier(identifier: str, dialect: str = 'mysql') -> str:
    """Safely quote database identifiers based on database dialect.

    Parameters
        identifier: Database identifier (table name, column name, etc.)
        dialect: Database dialect name, 'mysql' or 'sqlite'

    Returns
        Properly quoted and escaped identifier string

    Raises
        ValueError: If an unsupported dialect is specified
    """
    if dialect == 'mysql':
        return '`' + identifier.replace('`', '``') + '`'

    if dialect == 'sqlite':
        return '"' + identifier.replace('"', '""') + '"'

    raise ValueError(f'Unknown dialect: {dialect}')


def make_placeholders(count: int) -> str:
    """Comma-joined `?` markers, e.g. `?,?,?` for three values.
    """
    return ','.join(['?'] * count)


def slice_sql(sql: str, length: int = SLICE_LENGTH) -> str:
    """Shorten a statement for log output.

    Statements longer than `length` plus three characters are cut to
    `length` characters and suffixed with `...`; runs of whitespace collapse
    to single spaces.
    """
    if len(sql) > length + 3:
        sql = f'{sql[:length]}...'
    return _WHITESPACE.sub(' ', sql).strip()
