from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy import func, select

from library_api import create_app
from library_api.config import TestConfig
from library_api.extensions import db
from library_api.models import Book, Borrowing
from library_api.registry import Services


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 10, 9, 30))


@pytest.fixture
def app(tmp_path, clock):
    # separate sqlite file per test
    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'library_test.db'}"

    app = create_app(_Config)
    app.extensions["library_services"] = Services(app.config, clock=clock)
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def services(ctx):
    return ctx.extensions["library_services"]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    def make(role="librarian", user_id=1):
        with app.app_context():
            token = create_access_token(identity=str(user_id), additional_claims={"role": role})
        return {"Authorization": f"Bearer {token}"}
    return make


@pytest.fixture
def book(services):
    return services.catalog.add_book({
        "title": "The Left Hand of Darkness",
        "author": "Ursula K. Le Guin",
        "isbn": "9780441478125",
        "quantity": 1,
        "location": "A-12",
    })


@pytest.fixture
def borrower(services):
    return services.borrowers.register_borrower({"name": "Ada Reader", "email": "ada@example.com"})


@pytest.fixture
def check_invariants(ctx):
    """Asserts 0 <= available <= quantity and available == quantity - open borrowings."""
    def check():
        db.session.expire_all()
        for b in db.session.execute(select(Book)).scalars():
            open_count = db.session.execute(
                select(func.count(Borrowing.id)).where(
                    Borrowing.book_id == b.id, Borrowing.return_date.is_(None)
                )
            ).scalar_one()
            assert 0 <= b.available_quantity <= b.quantity
            assert b.available_quantity == b.quantity - open_count
    return check
