"""Tests for query expressions and the query compiler."""
import pytest
from tagdb.exceptions import UsageError
from tagdb.query import CompiledQuery, Param, Query, Text, build_query, param
from tagdb.query import sql


class TestTemplate:

    @pytest.mark.parametrize(('fragments', 'values', 'expected_sql', 'expected_params'), [
        (['SELECT 1'], [], 'SELECT 1', ()),
        (['SELECT * FROM t WHERE a = ', ''], [1], 'SELECT * FROM t WHERE a = ?', (1,)),
        (['SELECT * FROM t WHERE a = ', ' AND b = ', ''], [1, 'x'],
         'SELECT * FROM t WHERE a = ? AND b = ?', (1, 'x')),
        (['INSERT INTO t VALUES (', ', ', ')'], [None, 2.5],
         'INSERT INTO t VALUES (?, ?)', (None, 2.5)),
    ], ids=['no_values', 'one_value', 'two_values', 'null_value'])
    def test_scalar_values(self, fragments, values, expected_sql, expected_params):
        compiled = Query.template(fragments, *values).compile()

        assert compiled.sql == expected_sql
        assert compiled.params == expected_params
        assert compiled.sql.count('?') == len(values)

    def test_array_value_expands(self):
        compiled = Query.template(['SELECT * FROM t WHERE id IN (', ')'], [1, 2, 3]).compile()

        assert compiled.sql == 'SELECT * FROM t WHERE id IN (?,?,?)'
        assert compiled.params == (1, 2, 3)

    def test_array_preserves_order_with_scalars(self):
        compiled = Query.template(
            ['SELECT * FROM t WHERE a = ', ' AND id IN (', ') AND b = ', ''],
            'before', (10, 20), 'after').compile()

        assert compiled.sql == 'SELECT * FROM t WHERE a = ? AND id IN (?,?) AND b = ?'
        assert compiled.params == ('before', 10, 20, 'after')

    def test_single_element_array(self):
        compiled = Query.template(['WHERE id IN (', ')'], [42]).compile()

        assert compiled.sql == 'WHERE id IN (?)'
        assert compiled.params == (42,)

    def test_strings_are_not_expanded(self):
        compiled = Query.template(['WHERE name = ', ''], 'abc').compile()

        assert compiled.sql == 'WHERE name = ?'
        assert compiled.params == ('abc',)

    @pytest.mark.parametrize('empty', [[], ()], ids=['list', 'tuple'])
    def test_empty_array_rejected(self, empty):
        query = Query.template(['SELECT * FROM t WHERE id IN (', ')'], empty)

        with pytest.raises(UsageError, match='empty list'):
            query.compile()

    def test_value_count_mismatch(self):
        with pytest.raises(UsageError, match='Expected 1 value'):
            Query.template(['SELECT ', ''], 1, 2)

        with pytest.raises(UsageError):
            Query.template(['SELECT ', ' , ', ''], 1)

    def test_plain_string_rejected(self):
        with pytest.raises(UsageError):
            Query.template('SELECT 1')

    def test_non_string_fragment_rejected(self):
        with pytest.raises(UsageError, match='Fragment 1'):
            Query.template(['SELECT ', 5, ''], 1, 2)


class TestSqlBuilder:

    def test_text_and_params(self):
        query = sql('SELECT * FROM users WHERE id IN (', param([1, 2, 3]),
                    ') AND status = ', param('active'))

        assert query.compile() == CompiledQuery(
            'SELECT * FROM users WHERE id IN (?,?,?) AND status = ?', (1, 2, 3, 'active'))

    def test_nested_query_is_spliced(self):
        where = sql(' WHERE id = ', param(7))
        query = sql('SELECT * FROM users', where, ' LIMIT 1')

        assert query.compile().sql == 'SELECT * FROM users WHERE id = ? LIMIT 1'
        assert query.compile().params == (7,)

    def test_bare_value_rejected(self):
        with pytest.raises(UsageError, match='param'):
            sql('SELECT * FROM users WHERE id = ', 7)

    def test_composition(self):
        query = 'SELECT * FROM t' + sql(' WHERE a = ', param(1)) + ' ORDER BY a'

        assert query.compile().sql == 'SELECT * FROM t WHERE a = ? ORDER BY a'
        assert query.nodes[0] == Text('SELECT * FROM t')

    def test_params_before_expansion(self):
        query = sql('a IN (', param([1, 2]), ') AND b = ', param(3))

        assert query.params == [[1, 2], 3]

    def test_equality(self):
        assert sql('SELECT ', param(1)) == Query((Text('SELECT '), Param(1)))
        assert sql('SELECT ', param(1)) != sql('SELECT ', param(2))

    def test_invalid_node(self):
        with pytest.raises(UsageError):
            Query(['SELECT 1'])

    def test_compiled_query_unpacks(self):
        statement, params = sql('SELECT ', param(1)).compile()

        assert statement == 'SELECT ?'
        assert params == (1,)


class TestBuildQuery:

    def test_plain_string_is_usage_error(self):
        with pytest.raises(UsageError, match=r'db\.run'):
            build_query(('SELECT * FROM users',))

    def test_query_passes_through(self):
        query = sql('SELECT 1')
        assert build_query((query,)) is query

    def test_query_with_extra_values(self):
        with pytest.raises(UsageError):
            build_query((sql('SELECT 1'), 2))

    def test_fragments_and_values(self):
        query = build_query((['SELECT ', ''], 1))
        assert query.compile().sql == 'SELECT ?'

    def test_nothing_given(self):
        with pytest.raises(UsageError):
            build_query(())
