import base64
import os
from collections.abc import Generator
from datetime import datetime, timedelta
from decimal import Decimal

# Configure the application before it is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OAUTH_TOKEN_ENCRYPTION_KEY"] = base64.b64encode(bytes(range(32))).decode()
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["GOOGLE_CALENDAR_WEBHOOK_URL"] = "https://api.example.com/google-calendar/webhook"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backoffice.auth import create_access_token  # noqa: E402
from backoffice.database import Base, get_db  # noqa: E402
from backoffice.main import app  # noqa: E402
from backoffice.models import Client, Job, User  # noqa: E402

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh in-memory database per test"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client sharing the test session"""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def user(db: Session) -> User:
    user = User(auth_uid="test-user-123", email="owner@example.com", full_name="Test Owner")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    user = User(auth_uid="other-user-456", email="other@example.com")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.auth_uid)}"}


@pytest.fixture
def customer(db: Session, user: User) -> Client:
    customer = Client(
        user_id=user.id,
        name="Comunidad Los Olivos",
        tax_id="H12345678",
        email="admin@losolivos.es",
        address="Calle Mayor 1",
        city="Madrid",
        postal_code="28001",
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@pytest.fixture
def make_job(db: Session, user: User, customer: Client):
    """Factory for jobs starting ``days`` from now"""

    def _make_job(days: int = 1, **overrides) -> Job:
        start = (datetime.utcnow() + timedelta(days=days)).replace(minute=0, second=0, microsecond=0)
        values = {
            "user_id": user.id,
            "client_id": customer.id,
            "title": "Limpieza portal",
            "service_type": "general_cleaning",
            "status": "pending",
            "start_at": start,
            "end_at": start + timedelta(hours=2),
            "agreed_price": Decimal("80.00"),
        }
        values.update(overrides)
        job = Job(**values)
        db.add(job)
        db.commit()
        db.refresh(job)
        return job

    return _make_job


@pytest.fixture
def quote_payload(customer: Client) -> dict:
    return {
        "clientId": customer.id,
        "issueDate": "2026-03-10",
        "notes": "Incluye productos",
        "lines": [
            {"concept": "Limpieza general", "quantity": "2", "unitPrice": "45.50"},
            {"concept": "Cristales", "quantity": "1", "unitPrice": "30.00"},
        ],
    }
