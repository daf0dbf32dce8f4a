"""
Pytest fixtures for qrmenu backend tests.

Provides test database setup, cafe owner accounts, and a logged-in test client.
"""

from types import SimpleNamespace

import pytest
from qrmenu import create_app
from qrmenu.extensions import db
from qrmenu.models import DiningTable
from qrmenu.services import menu_service, order_service, table_service
from qrmenu.services.auth_service import create_user

OWNER_PASSWORD = "Password123!"
TEST_USER_AGENT = "pytest-browser/1.0"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'JWT_SECRET': None,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'MAIL_BACKEND': 'console',
        'AUTH_COOKIE_SECURE': False,
        'RETRY_BASE_DELAY': 0,
        'EXPOSE_ERROR_DETAILS': True,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def owner(db_session):
    """Cafe owner A."""
    return create_user(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@cafe.local",
        mobile="9000000001",
        password=OWNER_PASSWORD,
    )


@pytest.fixture(scope='function')
def other_owner(db_session):
    """Cafe owner B (tenant isolation)."""
    return create_user(
        first_name="Grace",
        last_name="Hopper",
        email="grace@cafe.local",
        mobile="9000000002",
        password=OWNER_PASSWORD,
    )


def login(client, login_id: str, password: str = OWNER_PASSWORD, login_type: str = "email",
          user_agent: str = TEST_USER_AGENT):
    """Helper to log in with a password; cookies land in the client's jar."""
    return client.post(
        '/v1/auth/user/verify-password',
        json={'loginId': login_id, 'loginType': login_type, 'password': password},
        headers={'User-Agent': user_agent},
    )


def set_cookie_names(response) -> list:
    """Names of the cookies a response sets (including deletions)."""
    return [header.split('=', 1)[0] for header in response.headers.getlist('Set-Cookie')]


def cleared_cookie_names(response) -> list:
    """Names of the cookies a response deletes."""
    return [
        header.split('=', 1)[0]
        for header in response.headers.getlist('Set-Cookie')
        if 'Max-Age=0' in header
    ]


@pytest.fixture(scope='function')
def auth_client(client, owner):
    """Test client holding owner A's accessToken/refreshToken cookies."""
    response = login(client, owner.email)
    assert response.status_code == 200
    return client


@pytest.fixture(scope='function')
def other_auth_client(app, other_owner):
    """Separate test client logged in as owner B."""
    other = app.test_client()
    response = login(other, other_owner.email)
    assert response.status_code == 200
    return other


def seed_menu(owner_id: str, price=100) -> SimpleNamespace:
    """Menu template, one table, one category and one menu item for an owner."""
    template = menu_service.create_template(owner_id, {"name": "Classic", "config": {"theme": "dark"}})
    table_service.create_tables(owner_id, ["T1"], template.unique_id)
    table = db.session.query(DiningTable).filter_by(user_id=owner_id, table_number="T1").one()
    category = menu_service.create_category(owner_id, {"name": "Mains"})
    item = menu_service.create_menu_item(owner_id, {
        "category_id": category.unique_id,
        "name": "Paneer Tikka",
        "price": price,
    })
    return SimpleNamespace(
        template_id=template.unique_id,
        table_id=table.unique_id,
        category_id=category.unique_id,
        item_id=item.unique_id,
    )


@pytest.fixture(scope='function')
def menu(owner):
    """Owner A's seeded menu."""
    return seed_menu(owner.unique_id)


@pytest.fixture(scope='function')
def order(owner, menu):
    """A pending order of two Paneer Tikka (subtotal 200.00) at table T1."""
    return order_service.submit_order(owner.unique_id, {
        "tableId": menu.table_id,
        "items": [{"unique_id": menu.item_id, "quantity": 2}],
    })
