import pytest

from catalogs_api.core import startup_checks


def test_sqlite_is_forbidden_in_production(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "sqlite:///./catalogs.db")

    with pytest.raises(RuntimeError, match="SQLite is forbidden"):
        startup_checks.validate_database_environment()


def test_postgres_is_accepted_in_production(monkeypatch):
    monkeypatch.setattr(startup_checks, "IS_PROD", True)
    monkeypatch.setattr(startup_checks, "DATABASE_URL", "postgresql://catalogs@db/catalogs")

    startup_checks.validate_database_environment()


def test_missing_jwt_secret_fails_startup(monkeypatch):
    monkeypatch.setattr(startup_checks, "JWT_SECRET_KEY", "")

    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        startup_checks.validate_auth_configuration()


def test_migration_check_is_skipped_in_tests(engine, tmp_path):
    startup_checks.ensure_migrations_applied(engine=engine, alembic_config_path=tmp_path / "missing.ini")


def test_migration_check_requires_alembic_state(monkeypatch, engine):
    from catalogs_api import main

    monkeypatch.setattr(startup_checks, "ENV_NORMALIZED", "prod")

    with pytest.raises(RuntimeError, match="no migration state"):
        startup_checks.ensure_migrations_applied(engine=engine, alembic_config_path=main.ALEMBIC_CONFIG_PATH)
