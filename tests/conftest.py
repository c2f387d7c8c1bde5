import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("INDEX_SCHEDULER_ENABLED", "0")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import catalogs_api.models  # noqa: E402,F401
from catalogs_api.core.database import Base  # noqa: E402
from catalogs_api.models.tenant import Tenant  # noqa: E402
from tests.fixtures_data import FROZEN_NOW, TENANT_ACME, TENANT_GLOBEX  # noqa: E402
from tests.helpers import FrozenClock  # noqa: E402


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    session.add(Tenant(**TENANT_ACME))
    session.add(Tenant(**TENANT_GLOBEX))
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FrozenClock(FROZEN_NOW)
