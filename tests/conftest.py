import pytest
from sqlalchemy import create_engine, text

from pinsanta import create_app
from pinsanta.extensions import db
from pinsanta.services.registry import create_participant

ADMIN_PIN = "987654"


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SANTA_ADMIN_PIN": ADMIN_PIN,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_pin():
    return ADMIN_PIN


@pytest.fixture
def admin_headers(admin_pin):
    return {"X-Admin-Pin": admin_pin}


@pytest.fixture
def make_participant(app):
    counter = iter(range(1000, 10000))

    def _make(name, pin=None, exclusion_ids=()):
        return create_participant(name, pin or str(next(counter)), exclusion_ids)

    return _make


@pytest.fixture
def trio(make_participant):
    return make_participant("Alice"), make_participant("Bob"), make_participant("Carol")


@pytest.fixture
def file_app(tmp_path):
    """App on a file database, so a second engine can commit between our reads and writes."""
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test",
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'santa.db'}",
        "SANTA_ADMIN_PIN": ADMIN_PIN,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def other_writer(file_app):
    """Commits SQL through a separate engine, like a concurrent request would."""
    engine = create_engine(file_app.config["SQLALCHEMY_DATABASE_URI"])

    def _commit(sql, **params):
        with engine.begin() as conn:
            conn.execute(text(sql), params)

    yield _commit
    engine.dispose()
