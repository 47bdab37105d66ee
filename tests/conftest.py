import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-key-for-orderbroker-suite"
os.environ["NOTIFICATION_QUEUE_BACKEND"] = "memory"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderbroker.data.database import Base, get_db
from orderbroker.data.models import OrderModel, UserModel
from orderbroker.domain.enums import Role
from orderbroker.main import create_app
from orderbroker.services.notification_service import NotificationQueue
from orderbroker.services.token_service import Principal, create_token


class RecordingSender:
    """Zamiast wysylki do WhatsApp zapisuje order_id."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.calls = []
        self.delivered = []

    def __call__(self, order_id: int):
        self.calls.append(order_id)
        if len(self.calls) <= self.failures:
            raise RuntimeError("provider unavailable")
        self.delivered.append(order_id)
        return True


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db):
    created = {
        "admin": UserModel(id=1, name="Admin", phone_number="9647500000001", role=Role.ADMIN.value),
        "worker": UserModel(id=2, name="Worker", phone_number="9647500000002", role=Role.WORKER.value),
        "customer": UserModel(id=7, name="Aram", phone_number="9647500000007", role=Role.CUSTOMER.value),
        "other": UserModel(id=8, name="Dilan", phone_number="9647500000008", role=Role.CUSTOMER.value),
    }
    db.add_all(created.values())
    db.commit()
    return created


@pytest.fixture
def principals(users):
    return {key: Principal(user_id=u.id, role=Role(u.role)) for key, u in users.items()}


@pytest.fixture
def make_order(db, users):
    def _make(owner="customer", **fields):
        values = {
            "user_id": users[owner].id,
            "title": "Sneakers",
            "size": "42",
            "color": "black",
            "quantity": 1,
            "price": Decimal("12.50"),
            "shipping_price": Decimal("3.00"),
            "local_shipping_price": Decimal("1.00"),
            "status": "PENDING",
            "product_link": "https://www.trendyol.com/p/1",
            "image_url": "/logo.png",
            "notes": "",
        }
        values.update(fields)
        order = OrderModel(**values)
        db.add(order)
        db.commit()
        db.refresh(order)
        return order

    return _make


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def queue(sender):
    return NotificationQueue(sender=sender, delay_seconds=0)


@pytest.fixture
def client(session_factory, queue):
    app = create_app(notification_queue=queue)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def auth(users):
    def _auth(key):
        user = users[key]
        token = create_token(user.id, Role(user.role))
        return {"Authorization": f"Bearer {token}"}

    return _auth
