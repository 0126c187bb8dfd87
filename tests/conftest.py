"""
Shared pytest fixtures.

Every test gets a fresh in-memory SQLite database.  ``StaticPool`` keeps a
single connection so the schema created here is visible to the session and
to the ``TestClient`` requests.
"""

import os

# Settings are read at import time; keep the module-level engine off disk and
# skip startup work before anything from the package is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")
os.environ.setdefault("SYNC_BUDGET_ENTRIES_ON_STARTUP", "false")

import datetime  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from budget_ledger import models  # noqa: E402,F401
from budget_ledger.database import Base, build_engine, get_db  # noqa: E402
from budget_ledger.main import app  # noqa: E402
from budget_ledger.models import CostCenter, ObjectCode  # noqa: E402
from budget_ledger.schemas.budget_allocation import AllocationCreate  # noqa: E402
from budget_ledger.services import allocation_service  # noqa: E402

FY = "2024-25"


@pytest.fixture
def engine():
    """In-memory SQLite engine with foreign keys on"""
    test_engine = build_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory) -> Session:
    """Session used directly by service-level tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory) -> TestClient:
    """TestClient whose requests each get their own session on the test engine"""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def reference_data(db: Session) -> None:
    """Object codes and cost centers used for description lookups"""
    db.add_all([
        ObjectCode(code="A01101", description="Basic Pay", category="Employee Related"),
        ObjectCode(code="A03201", description="Postage and Telegraph", category="Operating"),
        ObjectCode(code="A09999", description="Retired head", is_active=False),
        CostCenter(code="LZ4064", name="District Accounts Office"),
        CostCenter(code="LZ4065", name="Treasury Office"),
    ])
    db.commit()


@pytest.fixture
def make_allocation(db: Session):
    """Factory creating allocations through the service layer"""

    def _make(
        object_code: str = "A01101",
        cost_center: str = "LZ4064",
        total: str = "100000",
        strategy: str = "quarterly-equal",
        financial_year: str = FY,
        quarters: tuple[str, str, str, str] | None = None,
    ):
        q = [Decimal(v) for v in quarters] if quarters else [None] * 4
        return allocation_service.create_allocation(
            db,
            AllocationCreate(
                object_code=object_code,
                cost_center=cost_center,
                financial_year=financial_year,
                total_allocation=Decimal(total),
                release_strategy=strategy,
                q1_release=q[0],
                q2_release=q[1],
                q3_release=q[2],
                q4_release=q[3],
                date_created=datetime.date(2024, 7, 1),
            ),
        )

    return _make
