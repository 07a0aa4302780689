import logging

import pytest
import tagdb
from tests import config

logger = logging.getLogger(__name__)

SCHEMA = [
    'DROP TABLE IF EXISTS users',
    'DROP TABLE IF EXISTS events',
    """
    CREATE TABLE users (
        id INT NOT NULL PRIMARY KEY,
        name VARCHAR(20) NOT NULL,
        email VARCHAR(255) UNIQUE,
        note TEXT
    )
    """,
    """
    CREATE TABLE events (
        kind CHAR(8),
        payload TEXT
    )
    """,
]


@pytest.fixture(scope='session')
def mysql_docker(request):
    """Session-scoped MySQL container using testcontainers.

    Skips the requesting tests when Docker is not available.
    """
    try:
        from testcontainers.mysql import MySqlContainer
    except ImportError:
        pytest.skip('testcontainers is not installed')

    options = config.mysql
    container = MySqlContainer(
        image='mysql:8.0',
        username=options['username'],
        password=options['password'],
        dbname=options['database'],
    )

    try:
        container.start()
    except Exception as e:
        pytest.skip(f'MySQL container unavailable: {e}')

    request.addfinalizer(container.stop)

    options['hostname'] = container.get_container_host_ip()
    options['port'] = int(container.get_exposed_port(3306))
    logger.info(f"MySQL container started at {options['hostname']}:{options['port']}")
    return container


@pytest.fixture
def mysql_db(mysql_docker):
    db = tagdb.connect('mysql', config=config)
    for statement in SCHEMA:
        db.run(statement)

    yield db
    db.close()
