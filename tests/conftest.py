import pytest


@pytest.fixture(scope='session')
def db_path(tmp_path_factory):
    return tmp_path_factory.mktemp('db') / 'test.db'


@pytest.fixture(scope='session')
def app(db_path):
    """The Flask app, bound to one SQLite file for the whole test session.

    Flask-SQLAlchemy creates its engine when ``app`` is first imported, so
    ``FINANCE_DB_URI`` has to be set before that import and cannot change
    afterwards. Every test shares this file; ``client`` empties it.
    """
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv('FINANCE_DB_URI', 'sqlite:///' + str(db_path))
        from app import app
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    from app import db, init_database
    with app.app_context():
        db.drop_all()
        init_database()
        yield app.test_client()
        db.session.remove()
        db.drop_all()
