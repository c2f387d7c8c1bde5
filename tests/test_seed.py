import pytest

from catalogs_api.models.catalog import Catalog
from catalogs_api.models.tenant import Tenant
from catalogs_api.models.user import User
from catalogs_api.services.auth import validate_credentials
from catalogs_api.services.seed import SAMPLE_CATALOGS, ensure_schema, seed_database
from tests.fixtures_data import FROZEN_NOW


@pytest.fixture
def empty_db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def test_seed_populates_empty_database(empty_db, clock):
    report = seed_database(empty_db, password="seed-pass", clock=clock)

    assert report.seeded == ["tenants", "users", "catalogs"]
    assert empty_db.query(Tenant).count() == 1
    catalogs = empty_db.query(Catalog).order_by(Catalog.id).all()
    assert [catalog.name for catalog in catalogs] == [name for name, _, _ in SAMPLE_CATALOGS]
    assert all(catalog.primary is False for catalog in catalogs)
    assert all(catalog.indexed_at == FROZEN_NOW for catalog in catalogs)


def test_seeded_user_can_log_in(empty_db, clock):
    seed_database(empty_db, password="seed-pass", email="Demo@Example.com", clock=clock)

    identity = validate_credentials(empty_db, "demo@example.com", "seed-pass")

    assert identity is not None
    assert identity.username == "testuser"


def test_seed_is_idempotent(empty_db, clock):
    seed_database(empty_db, password="seed-pass", clock=clock)

    report = seed_database(empty_db, password="other-pass", clock=clock)

    assert report.seeded == []
    assert report.skipped == ["tenants", "users", "catalogs"]
    assert empty_db.query(User).count() == 1
    assert empty_db.query(Catalog).count() == len(SAMPLE_CATALOGS)


def test_seed_reuses_existing_tenant(db, clock):
    report = seed_database(db, password="seed-pass", clock=clock)

    assert "tenants" in report.skipped
    assert db.query(Tenant).count() == 2
    assert {catalog.tenant_id for catalog in db.query(Catalog).all()} == {1}


def test_ensure_schema_reports_missing_tables():
    from sqlalchemy import create_engine

    bare_engine = create_engine("sqlite+pysqlite:///:memory:")

    with pytest.raises(RuntimeError, match="alembic upgrade head"):
        ensure_schema(bare_engine)


def test_ensure_schema_accepts_created_tables(engine):
    ensure_schema(engine)
