import pytest
from tagdb import UNDEFINED, IntegrityError, param, sql

pytestmark = pytest.mark.mysql

USERS = [
    {'id': 1, 'name': 'Alice', 'email': 'alice@example.com', 'note': None},
    {'id': 2, 'name': 'Bob', 'email': 'bob@example.com', 'note': 'admin'},
]


@pytest.fixture
def db(mysql_db):
    mysql_db.table('users').insert(USERS)
    return mysql_db


def test_schema(db):
    users = db.table('users')

    assert users.schema.field_names == ['id', 'name', 'email', 'note']
    assert users.primary_key == ['id']
    assert users.columns[1].max_length == 20


def test_templated_query(db):
    rows = db(['SELECT name FROM users WHERE id IN (', ') ORDER BY id'], [1, 2]).rows

    assert rows == [{'name': 'Alice'}, {'name': 'Bob'}]


def test_percent_in_literal(db):
    query = sql("SELECT name FROM users WHERE email LIKE '%example.com' AND id = ", param(2))

    assert db.get(query) == {'name': 'Bob'}


def test_insert_ignore_and_replace(db):
    users = db.table('users')
    users.insert({'id': 1, 'name': 'dup'}, ignore=True)
    assert db.get(['SELECT name FROM users WHERE id = ', ''], 1) == {'name': 'Alice'}

    users.insert({'id': 1, 'name': 'Alicia'}, replace=True)
    assert db.get(['SELECT name FROM users WHERE id = ', ''], 1) == {'name': 'Alicia'}


def test_update(db):
    db.table('users').update({'id': 2, 'note': None})

    assert db.get(['SELECT note FROM users WHERE id = ', ''], 2) == {'note': None}


def test_sanitize(db):
    users = db.table('users')
    records = [{'id': 3, 'name': 'C' * 25, 'email': UNDEFINED}]

    assert len(users.sanitize(records)) == 2
    users.insert(records)
    assert db.get(['SELECT name FROM users WHERE id = ', ''], 3) == {'name': 'C' * 20}


def test_transaction_rollback(db):
    def work(conn):
        conn.execute('DELETE FROM users WHERE id = ?', (2,))
        conn.execute('INSERT INTO users (id, name) VALUES (?, ?)', (1, 'dup'))

    with pytest.raises(IntegrityError):
        db.transaction(work)

    assert db.run('SELECT COUNT(*) AS n FROM users').rows == [{'n': 2}]


def test_transaction_commit(db):
    db.transaction(lambda conn: conn.execute('DELETE FROM users WHERE id = ?', (2,)))

    assert db.run('SELECT COUNT(*) AS n FROM users').rows == [{'n': 1}]
