import pytest
from fastapi.testclient import TestClient

from fortmix.config import Settings
from fortmix.main import create_app


OWNER_USERNAME = "owner"
OWNER_PASSWORD = "owner123"


@pytest.fixture
def settings(tmp_path):
    """Isolated settings: one SQLite file per test, UTC calendar."""
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'fortmix_test.db'}",
        SECRET_KEY="test-secret",
        TIMEZONE="UTC",
        ADMIN_USERNAME=OWNER_USERNAME,
        ADMIN_PASSWORD=OWNER_PASSWORD,
        ADMIN_NAME="Dona Maria",
        LOG_FILE=str(tmp_path / "fortmix_test.log"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Test client with the lifespan running (tables created, owner seeded)."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def session(app, client):
    """Opens a fresh ORM session on the test store: `with session() as s: ...`."""
    return app.state.db.session


def login(client, username, password):
    response = client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def owner_headers(client):
    return login(client, OWNER_USERNAME, OWNER_PASSWORD)


@pytest.fixture
def make_user(client, owner_headers):
    """Create a user with the given role through the API and return auth headers."""
    def _make(role, username=None, name=None):
        username = username or role.lower()
        response = client.post(
            "/api/users",
            json={
                "username": username,
                "password": "secret1",
                "name": name or f"{role} User",
                "role": role,
            },
            headers=owner_headers,
        )
        assert response.status_code == 200, response.text
        return login(client, username, "secret1")

    return _make


@pytest.fixture
def manager_headers(make_user):
    return make_user("Manager")


@pytest.fixture
def salesperson_headers(make_user):
    return make_user("Salesperson")


@pytest.fixture
def clerk_headers(make_user):
    return make_user("StockClerk")


def create_product(client, headers, **overrides):
    payload = {
        "code": "001",
        "name": "Argamassa AC-I 20kg",
        "category": "Argamassas",
        "price": 32.90,
        "cost_price": 25.00,
        "stock_quantity": 100,
        "min_stock": 10,
        "unit": "SC",
    }
    payload.update(overrides)
    response = client.post("/api/products", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["id"]


def record_sale(client, headers, lines, payment_method="Dinheiro", total=None):
    """lines: [(product_id, quantity, price), ...]"""
    items = [{"id": pid, "quantity": qty, "price": price} for pid, qty, price in lines]
    if total is None:
        total = round(sum(qty * price for _, qty, price in lines), 2)
    return client.post(
        "/api/sales",
        json={"items": items, "payment_method": payment_method, "total": total},
        headers=headers,
    )


@pytest.fixture
def product_id(client, owner_headers):
    return create_product(client, owner_headers)
