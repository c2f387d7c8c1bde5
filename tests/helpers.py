from __future__ import annotations

from datetime import datetime, timedelta

from catalogs_api.models.catalog import Catalog, Vertical


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


def add_catalog(db, *, name, tenant_id=1, vertical=Vertical.FASHION, primary=False, locales=None, **extra):
    catalog = Catalog(
        tenant_id=tenant_id,
        name=name,
        vertical=vertical,
        primary=primary,
        locales=list(locales or ["en_US"]),
        **extra,
    )
    db.add(catalog)
    db.commit()
    db.refresh(catalog)
    return catalog


def primary_ids(db, *, tenant_id, vertical):
    db.expire_all()
    rows = (
        db.query(Catalog)
        .filter(Catalog.tenant_id == tenant_id, Catalog.vertical == vertical, Catalog.primary.is_(True))
        .all()
    )
    return [catalog.id for catalog in rows]
