import pytest
from tagdb import IntegrityError


def count(db):
    return db.run('SELECT COUNT(*) AS n FROM users').rows[0]['n']


def test_commit(sqlite_db):
    def work(conn):
        conn.execute('INSERT INTO users (id, name) VALUES (?, ?)', (4, 'Dana'))
        conn.execute('UPDATE users SET note = ? WHERE id = ?', ('new', 4))
        return conn.execute('SELECT note FROM users WHERE id = ?', (4,)).rows[0]['note']

    assert sqlite_db.transaction(work) == 'new'
    assert count(sqlite_db) == 4


def test_rollback_on_error(sqlite_db):
    def work(conn):
        conn.execute('INSERT INTO users (id, name) VALUES (?, ?)', (4, 'Dana'))
        conn.execute('INSERT INTO users (id, name) VALUES (?, ?)', (1, 'dup'))

    with pytest.raises(IntegrityError):
        sqlite_db.transaction(work)

    assert count(sqlite_db) == 3


def test_rollback_on_application_error(sqlite_db):
    with pytest.raises(LookupError):
        with sqlite_db.transaction() as conn:
            conn.execute('DELETE FROM users')
            raise LookupError('changed my mind')

    assert count(sqlite_db) == 3


def test_context_manager_commit(sqlite_db):
    with sqlite_db.transaction() as conn:
        conn.execute('DELETE FROM users WHERE id = ?', (3,))

    assert count(sqlite_db) == 2


def test_connection_returned_after_transaction(sqlite_db):
    for _ in range(5):
        sqlite_db.transaction(lambda conn: conn.execute('SELECT 1'))

    assert sqlite_db.pool.engine.pool.checkedout() == 0
