"""
Pytest fixtures for Stockroom backend tests.

Provides an in-memory database, one user per role, a small catalog, and
helpers for logging in through the API.
"""

import pytest

from stockroom import create_app
from stockroom.config import TestingConfig
from stockroom.extensions import db
from stockroom.models import Brand, Category, Firm, Product, User
from stockroom.services.auth_service import create_user

PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
    """Fresh data for each test (schema is kept)."""
    with app.app_context():
        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def users(db_session):
    """One active user per role, keyed by role name."""
    created = {}
    for role in ("admin", "staff", "coordinator", "user"):
        created[role] = create_user(
            username=role,
            email=f"{role}@stockroom.test",
            password=PASSWORD,
            role=role,
            first_name=role.capitalize(),
            last_name="Tester",
        )
    return created


@pytest.fixture(scope='function')
def catalog(db_session):
    """Electronics category, one brand, one firm, one product (stock 0, price 100)."""
    category = Category(name="Electronics")
    brand = Brand(name="Acme")
    firm = Firm(name="Wholesale Co", phone="555-0100")
    db_session.add_all([category, brand, firm])
    db_session.flush()

    product = Product(
        name="Laptop",
        category_id=category.id,
        brand_id=brand.id,
        price=100.0,
        quantity=0,
    )
    db_session.add(product)
    db_session.commit()

    return {
        "category_id": category.id,
        "brand_id": brand.id,
        "firm_id": firm.id,
        "product_id": product.id,
    }


def reload_product(product_id: int) -> Product:
    """Fresh read, bypassing anything cached in the identity map."""
    db.session.expire_all()
    return db.session.get(Product, product_id)


def reload_user(user_id: int) -> User:
    db.session.expire_all()
    return db.session.get(User, user_id)


def get_auth_token(client, username: str, password: str = PASSWORD) -> str:
    """Helper to get an access token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json['bearer']['access_token']
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def headers_for(client, users):
    """headers_for("staff") -> Authorization headers for that role's user."""
    cache = {}

    def _headers(role: str) -> dict:
        if role not in cache:
            cache[role] = auth_headers(get_auth_token(client, role))
        return cache[role]

    return _headers
