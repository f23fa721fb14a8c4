"""
Pytest fixtures for GiveMarket backend tests.

Provides an in-memory app, per-test table wipe, one user per role, real
login-based auth headers, and small builders for organizations, products,
orders and donations.
"""

import pytest

from givemarket import create_app
from givemarket.extensions import db
from givemarket.models import Organization
from givemarket.services import auth_service, product_service, order_service, donation_service


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
def admin(db_session):
    return auth_service.create_user("admin@givemarket.test", PASSWORD, role="admin", full_name="Admin")


@pytest.fixture(scope='function')
def seller(db_session):
    return auth_service.create_user("seller@givemarket.test", PASSWORD, role="seller", full_name="Seller One")


@pytest.fixture(scope='function')
def other_seller(db_session):
    return auth_service.create_user("seller2@givemarket.test", PASSWORD, role="seller", full_name="Seller Two")


@pytest.fixture(scope='function')
def customer(db_session):
    return auth_service.create_user("customer@givemarket.test", PASSWORD, role="customer", full_name="Customer One")


@pytest.fixture(scope='function')
def other_customer(db_session):
    return auth_service.create_user("customer2@givemarket.test", PASSWORD, role="customer", full_name="Customer Two")


@pytest.fixture(scope='function')
def organization(db_session, admin):
    org = Organization(
        name_en="Clean Water Fund",
        name_ar="صندوق المياه النظيفة",
        blockchain_address="0xWATER0001",
        created_by=admin.id,
        is_verified=True,
    )
    db_session.add(org)
    db_session.commit()
    return org


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))


@pytest.fixture(scope='function')
def seller_headers(client, seller):
    return auth_headers(get_auth_token(client, seller.email))


@pytest.fixture(scope='function')
def customer_headers(client, customer):
    return auth_headers(get_auth_token(client, customer.email))


def reload(obj):
    """Re-read a row after changes made by another session (e.g. a request)."""
    db.session.expire_all()
    return db.session.get(type(obj), obj.id)


def make_product(admin, seller, *, name="Olive Oil", price_cents=2500, organization=None, status="draft"):
    """Create a product and walk it through the workflow up to `status`."""
    payload = {"seller_id": seller.id, "name_en": name, "price_cents": price_cents}
    if organization is not None:
        payload["organization_id"] = organization.id
    product = product_service.create_product(payload, admin)
    if status in ("pending_approval", "approved", "rejected"):
        product_service.submit_for_approval(product.id, seller)
    if status == "approved":
        product_service.approve(product.id, admin)
    if status == "rejected":
        product_service.reject(product.id, admin, "Missing description")
    return db.session.get(type(product), product.id)


def make_order(user, total_amount_cents=2500):
    return order_service.create_order(user, total_amount_cents)


def make_direct_donation(user, organization, amount_cents=1000):
    return donation_service.create_donation(user, organization.id, amount_cents, "direct")
