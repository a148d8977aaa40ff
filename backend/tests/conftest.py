"""
Shared test fixtures for GSMS tests

Provides database setup and client creation
"""
import os

# App settings are read on import; keep tests off the real database
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gsms.main import app
from gsms.db.base import Base
from gsms.db.session import get_db
from tests.factories import reset_sequences


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite emits its own BEGIN lazily, which breaks SAVEPOINT; let SQLAlchemy drive it
@event.listens_for(engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Create all tables for testing using SQLAlchemy metadata"""
    import gsms.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine):
    """Drop all tables after testing"""
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Create a fresh database session for each test"""
    reset_sequences()
    create_tables(engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(engine)


@pytest.fixture
def client(db_session):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def fabric(db_session):
    """Main fabric with 500 m in stock"""
    from tests.factories import create_test_material

    material = create_test_material(
        db_session,
        item_code="FAB-001",
        name="Cotton Jersey",
        unit="m",
        opening_stock=500,
    )
    db_session.commit()
    return material


@pytest.fixture
def thread(db_session):
    """Sewing thread with 1000 m in stock"""
    from tests.factories import create_test_material

    material = create_test_material(
        db_session,
        item_code="THR-001",
        name="Polyester Thread",
        unit="m",
        opening_stock=1000,
    )
    db_session.commit()
    return material


@pytest.fixture
def tshirt(db_session, fabric, thread):
    """T-shirt style: 1.5 m fabric at 5% wastage (primary), 20 m thread at 10%"""
    from tests.factories import create_test_product

    product = create_test_product(
        db_session,
        style_no="TS-100",
        item_name="Crew Neck T-Shirt",
        materials=[
            {"material": fabric, "quantity_per_piece": "1.5", "expected_wastage_percentage": "5"},
            {"material": thread, "quantity_per_piece": "20", "expected_wastage_percentage": "10"},
        ],
    )
    db_session.commit()
    return product
