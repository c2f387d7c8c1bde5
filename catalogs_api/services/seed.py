from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock, utc_now
from catalogs_api.models.catalog import Catalog, Vertical
from catalogs_api.models.tenant import Tenant
from catalogs_api.models.user import User
from catalogs_api.services.auth import hash_password

logger = logging.getLogger(__name__)
SEED_PREFIX = "[SEED]"

DEFAULT_TENANT_NAME = "Test Client"
DEFAULT_USERNAME = "testuser"
DEFAULT_EMAIL = "test@gmail.com"

SAMPLE_CATALOGS = (
    ("Spring Fashion Trends", Vertical.FASHION, ["en_US", "en_CA", "es_ES"]),
    ("Modern Home Essentials", Vertical.HOME, ["en_US", "fr_FR", "es_ES"]),
    ("Modern Essentials", Vertical.GENERAL, ["en_US", "fr_FR", "es_ES"]),
)


@dataclass
class SeedReport:
    seeded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


def ensure_schema(engine: Engine) -> None:
    inspector = inspect(engine)
    missing = [table for table in ("tenants", "users", "catalogs") if not inspector.has_table(table)]
    if missing:
        raise RuntimeError(
            f"Tables missing ({', '.join(missing)}). Run `alembic upgrade head` first."
        )


def seed_database(
    db: Session,
    *,
    password: str,
    tenant_name: str = DEFAULT_TENANT_NAME,
    username: str = DEFAULT_USERNAME,
    email: str = DEFAULT_EMAIL,
    clock: Clock = utc_now,
) -> SeedReport:
    """Populate an empty database with one tenant, its user and sample catalogs.

    Each table is only seeded when it is empty, so running twice is harmless.
    """
    report = SeedReport()

    tenant = db.query(Tenant).order_by(Tenant.id.asc()).first()
    if tenant is None:
        tenant = Tenant(name=tenant_name)
        db.add(tenant)
        db.flush()
        report.seeded.append("tenants")
    else:
        report.skipped.append("tenants")

    if db.query(User).count() == 0:
        db.add(
            User(
                tenant_id=tenant.id,
                username=username,
                email=email.strip().lower(),
                password_hash=hash_password(password),
            )
        )
        report.seeded.append("users")
    else:
        report.skipped.append("users")

    if db.query(Catalog).count() == 0:
        indexed_at = clock()
        for name, vertical, locales in SAMPLE_CATALOGS:
            db.add(
                Catalog(
                    tenant_id=tenant.id,
                    name=name,
                    vertical=vertical,
                    primary=False,
                    locales=list(locales),
                    indexed_at=indexed_at,
                )
            )
        report.seeded.append("catalogs")
    else:
        report.skipped.append("catalogs")

    db.commit()
    logger.info("%s seeded=%s skipped=%s", SEED_PREFIX, report.seeded, report.skipped)
    return report
