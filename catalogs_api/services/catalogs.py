from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock, utc_now
from catalogs_api.core.config import MAX_BULK_IDS
from catalogs_api.models.catalog import Catalog, Vertical
from catalogs_api.models.tenant import Tenant
from catalogs_api.schemas.catalog import CatalogCreate, CatalogUpdate

logger = logging.getLogger(__name__)

PRIMARY_INDEX_NAME = "uq_catalogs_tenant_vertical_primary"
NAME_CONSTRAINT_NAME = "uq_catalogs_name"


def _not_found(detail: str = "Catalog not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _integrity_detail(exc: IntegrityError) -> str:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    if NAME_CONSTRAINT_NAME in message or "catalogs.name" in message:
        return "Catalog name already exists"
    if PRIMARY_INDEX_NAME in message or "catalogs.vertical" in message:
        return "Another primary catalog already exists for this vertical"
    return "Database constraint violated"


@contextmanager
def _write_transaction(db: Session, failure_detail: str, log_message: str, *log_args: Any) -> Iterator[None]:
    """Commit the enclosed writes as one unit; constraint errors become 400, other store errors 500."""
    try:
        yield
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(log_message + " (constraint violation: %s)", *log_args, exc.orig)
        raise _bad_request(_integrity_detail(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(log_message, *log_args)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure_detail) from exc


def _require_ids(ids: Sequence[int], action: str) -> list[int]:
    if not ids:
        raise _bad_request(f"No IDs provided for {action}")
    unique_ids = list(dict.fromkeys(int(catalog_id) for catalog_id in ids))
    if len(unique_ids) > MAX_BULK_IDS:
        raise _bad_request(f"Too many IDs provided for {action} (max {MAX_BULK_IDS})")
    return unique_ids


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _find_tenant_catalogs(db: Session, *, ids: Sequence[int], tenant_id: int) -> list[Catalog]:
    return (
        db.query(Catalog)
        .filter(Catalog.id.in_(ids), Catalog.tenant_id == tenant_id)
        .order_by(Catalog.id.asc())
        .all()
    )


def get_catalog(db: Session, *, catalog_id: int, tenant_id: int) -> Catalog:
    catalog = (
        db.query(Catalog)
        .filter(Catalog.id == catalog_id, Catalog.tenant_id == tenant_id)
        .first()
    )
    if catalog is None:
        raise _not_found()
    return catalog


def demote_existing_primary(db: Session, *, vertical: Vertical, tenant_id: int) -> int:
    """Clear the primary flag on every catalog of ``tenant_id`` in ``vertical``.

    Runs inside the caller's transaction and never commits, so the demotion and
    the write that promotes the new primary land atomically.
    """
    demoted = (
        db.query(Catalog)
        .filter(
            Catalog.tenant_id == tenant_id,
            Catalog.vertical == vertical,
            Catalog.primary.is_(True),
        )
        .update({Catalog.primary: False}, synchronize_session="fetch")
    )
    if demoted:
        logger.info("Demoted %s primary catalog(s) tenant_id=%s vertical=%s", demoted, tenant_id, vertical.value)
    return demoted


def create_catalog(db: Session, *, payload: CatalogCreate, tenant_id: int) -> Catalog:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id).first()
    if tenant is None:
        raise _not_found("Tenant not found")

    catalog = Catalog(
        tenant_id=tenant.id,
        name=payload.name,
        vertical=payload.vertical,
        primary=payload.primary,
        locales=list(payload.locales),
    )
    with _write_transaction(db, "Failed to create catalog", "Error creating catalog tenant_id=%s", tenant_id):
        if payload.primary:
            demote_existing_primary(db, vertical=payload.vertical, tenant_id=tenant.id)
        db.add(catalog)

    db.refresh(catalog)
    logger.info("Catalog created id=%s tenant_id=%s primary=%s", catalog.id, tenant_id, catalog.primary)
    return catalog


def update_catalog(
    db: Session,
    *,
    catalog_id: int,
    payload: CatalogUpdate,
    tenant_id: int,
    clock: Clock = utc_now,
) -> Catalog:
    catalog = get_catalog(db, catalog_id=catalog_id, tenant_id=tenant_id)
    changes = payload.model_dump(exclude_unset=True)

    new_vertical = Vertical(changes.get("vertical", catalog.vertical))
    new_primary = bool(changes.get("primary", catalog.primary))
    # Becoming primary, or a primary moving vertical, takes over from the incumbent.
    needs_demotion = new_primary and (not catalog.primary or new_vertical != catalog.vertical)

    with _write_transaction(db, "Failed to update catalog", "Error updating catalog with ID %s", catalog_id):
        if needs_demotion:
            demote_existing_primary(db, vertical=new_vertical, tenant_id=tenant_id)
        for field, value in changes.items():
            setattr(catalog, field, value)
        # Every update restamps the index time, not only indexing requests.
        catalog.indexed_at = clock()

    db.refresh(catalog)
    return catalog


def delete_catalog(db: Session, *, catalog_id: int, tenant_id: int) -> Dict[str, str]:
    catalog = get_catalog(db, catalog_id=catalog_id, tenant_id=tenant_id)
    with _write_transaction(db, "Failed to delete catalog", "Error deleting catalog with ID %s", catalog_id):
        db.delete(catalog)
    return {"message": "Catalog deleted successfully"}


def bulk_delete_catalogs(db: Session, *, ids: Sequence[int], tenant_id: int) -> Dict[str, Any]:
    requested_ids = _require_ids(ids, "bulk deletion")

    catalogs = _find_tenant_catalogs(db, ids=requested_ids, tenant_id=tenant_id)
    if not catalogs:
        raise _not_found("No catalogs found for the provided IDs")

    deleted_count = len(catalogs)
    with _write_transaction(
        db, "Failed to delete catalogs", "Error during bulk catalog deletion tenant_id=%s", tenant_id
    ):
        for catalog in catalogs:
            db.delete(catalog)

    logger.info("Bulk deleted %s catalogs for tenant %s", deleted_count, tenant_id)
    return {"message": "Catalogs deleted successfully", "deletedCount": deleted_count}


def index_all_catalogs(db: Session, *, clock: Clock = utc_now) -> int:
    """Stamp every catalog of every tenant; a global maintenance operation."""
    indexed_at = clock()
    with _write_transaction(db, "Failed to index catalogs", "Error indexing all catalogs"):
        indexed = db.query(Catalog).update({Catalog.indexed_at: indexed_at}, synchronize_session=False)

    logger.info("Indexed %s catalogs at %s", indexed, indexed_at.isoformat())
    return indexed


def index_selected_catalogs(
    db: Session,
    *,
    ids: Sequence[int],
    tenant_id: int,
    clock: Clock = utc_now,
) -> Dict[str, Any]:
    requested_ids = _require_ids(ids, "indexing")

    catalogs = _find_tenant_catalogs(db, ids=requested_ids, tenant_id=tenant_id)
    if not catalogs:
        raise _not_found("No catalogs found for the provided IDs")

    indexed_at = clock()
    indexed_ids = [int(catalog.id) for catalog in catalogs]
    with _write_transaction(
        db, "Failed to index catalogs", "Error indexing selected catalogs tenant_id=%s", tenant_id
    ):
        for catalog in catalogs:
            catalog.indexed_at = indexed_at

    return {
        "message": "Selected catalogs have been indexed successfully",
        "indexedCatalogs": [{"id": catalog_id, "indexedAt": indexed_at} for catalog_id in indexed_ids],
    }


def list_catalogs(
    db: Session,
    *,
    tenant_id: int,
    name: Optional[str] = None,
    multi_locale: Optional[bool] = None,
    page: int = 1,
    page_size: int = 10,
) -> Dict[str, Any]:
    query = db.query(Catalog).filter(Catalog.tenant_id == tenant_id)

    search = (name or "").strip()
    if search:
        query = query.filter(Catalog.name.ilike(f"%{_escape_like(search)}%", escape="\\"))

    if multi_locale is not None:
        locale_count = func.json_array_length(Catalog.locales)
        query = query.filter(locale_count > 1 if multi_locale else locale_count <= 1)

    total = query.count()
    catalogs = (
        query.order_by(Catalog.created_at.desc(), Catalog.id.desc())
        .offset((max(page, 1) - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"data": catalogs, "total": total}
