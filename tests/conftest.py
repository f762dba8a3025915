from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pelotas_arch.db.base import Base
from pelotas_arch.models import Account, Tracker, TrackerStatus
from pelotas_arch.repositories import AccountRepository, TrackerRepository


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture()
def db_session():
    """Per-test SQLite in-memory session with full rollback."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign key support in SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def trackers(db_session):
    return TrackerRepository(db_session)


@pytest.fixture()
def accounts(db_session):
    return AccountRepository(db_session)


@pytest.fixture()
def seed_trackers(db_session):
    """Seed 2 accounts and 30 trackers: 20 online (ann), 10 offline (bob)."""
    ann = Account(name="ann", email="ann@example.com")
    bob = Account(name="bob", email="bob@example.com", active=False)
    db_session.add_all([ann, bob])
    db_session.flush()

    base_time = datetime(2025, 6, 15, 10, 0, 0)
    items = []
    for i in range(30):
        online = i < 20
        items.append(
            Tracker(
                name=f"tracker-{i:02d}",
                serial=f"SN{i:04d}",
                status=TrackerStatus.online if online else TrackerStatus.offline,
                active=i % 3 != 0,
                owner_id=ann.id if online else bob.id,
                created_at=base_time + timedelta(minutes=i),
            )
        )

    db_session.add_all(items)
    db_session.commit()

    return {"accounts": {"ann": ann, "bob": bob}, "trackers": items}
