import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ["DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from gatepass import lifecycle  # noqa: E402
from gatepass.database import get_db  # noqa: E402
from gatepass.main import app, get_clock  # noqa: E402
from gatepass.models import Base, Employee  # noqa: E402


class FakeClock:
    """Deterministic clock; call it for the current time, advance it by hand."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, value):
        self.now = value
        return value


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'gatepass.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def employees(db):
    priya = Employee(full_name="Priya Sharma", email="priya@company.com", department="Finance")
    arjun = Employee(full_name="Arjun Mehta", email="arjun@company.com", department="IT")
    retired = Employee(full_name="Ravi Kumar", email="ravi@company.com", is_active=False)
    db.add_all([priya, arjun, retired])
    db.commit()
    return {"priya": priya.id, "arjun": arjun.id, "retired": retired.id}


@pytest.fixture
def registration(employees):
    def build(employee="priya", **visitor_overrides):
        visitor = {
            "full_name": "Alice Smith",
            "phone": "9876543210",
            "email": "alice@example.com",
            "company": "Acme Corp",
            "id_type": "passport",
            "id_number": "P1234567",
        }
        visitor.update(visitor_overrides)
        employee_id = employees[employee] if isinstance(employee, str) else employee
        return {"visitor": visitor, "employee_id": employee_id, "purpose": "Quarterly review"}
    return build


@pytest.fixture
def make_visit(db, clock, registration):
    def create(employee="priya", **visitor_overrides):
        return lifecycle.register_visit(
            db, registration(employee, **visitor_overrides), clock=clock
        )
    return create


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
