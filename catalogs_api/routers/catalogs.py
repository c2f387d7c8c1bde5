from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock
from catalogs_api.core.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from catalogs_api.core.database import get_db
from catalogs_api.deps import get_clock, get_current_identity, get_request_tenant_id
from catalogs_api.models.catalog import Catalog
from catalogs_api.schemas.catalog import (
    MAX_DB_ID,
    BulkDeleteResponse,
    CatalogCreate,
    CatalogIds,
    CatalogPage,
    CatalogRead,
    CatalogUpdate,
    IndexSelectedResponse,
    MessageResponse,
)
from catalogs_api.services import catalogs as catalog_service
from catalogs_api.services.auth import UserIdentity

router = APIRouter(prefix="/catalogs", tags=["catalogs"])

# Keeps the row offset inside the INTEGER range for every allowed page size.
MAX_PAGE = MAX_DB_ID // MAX_PAGE_SIZE


def _catalog_to_dict(catalog: Catalog) -> dict:
    return {
        "id": catalog.id,
        "tenantId": catalog.tenant_id,
        "name": catalog.name,
        "vertical": catalog.vertical,
        "primary": bool(catalog.primary),
        "locales": list(catalog.locales or []),
        "indexedAt": catalog.indexed_at,
        "createdAt": catalog.created_at,
        "updatedAt": catalog.updated_at,
    }


@router.get("", response_model=CatalogPage)
def list_catalogs(
    name: Optional[str] = Query(None, max_length=255),
    multi_locale: Optional[bool] = Query(None, alias="multiLocale"),
    page: int = Query(1, ge=1, le=MAX_PAGE),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    result = catalog_service.list_catalogs(
        db,
        tenant_id=tenant_id,
        name=name,
        multi_locale=multi_locale,
        page=page,
        page_size=page_size,
    )
    return {"data": [_catalog_to_dict(catalog) for catalog in result["data"]], "total": result["total"]}


@router.post("", response_model=CatalogRead, status_code=status.HTTP_201_CREATED)
def create_catalog(
    payload: CatalogCreate,
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    catalog = catalog_service.create_catalog(db, payload=payload, tenant_id=tenant_id)
    return _catalog_to_dict(catalog)


@router.post("/bulk_delete", response_model=BulkDeleteResponse)
def bulk_delete_catalogs(
    payload: CatalogIds,
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    return catalog_service.bulk_delete_catalogs(db, ids=payload.ids, tenant_id=tenant_id)


@router.post("/index_all", response_class=PlainTextResponse)
def index_all_catalogs(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    _identity: UserIdentity = Depends(get_current_identity),
):
    catalog_service.index_all_catalogs(db, clock=clock)
    return "All catalogs have been indexed successfully"


@router.post("/index_selected", response_model=IndexSelectedResponse)
def index_selected_catalogs(
    payload: CatalogIds,
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return catalog_service.index_selected_catalogs(db, ids=payload.ids, tenant_id=tenant_id, clock=clock)


@router.get("/{catalog_id}", response_model=CatalogRead)
def get_catalog(
    catalog_id: int = Path(..., ge=1, le=MAX_DB_ID),
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    catalog = catalog_service.get_catalog(db, catalog_id=catalog_id, tenant_id=tenant_id)
    return _catalog_to_dict(catalog)


@router.put("/{catalog_id}", response_model=CatalogRead)
def update_catalog(
    payload: CatalogUpdate,
    catalog_id: int = Path(..., ge=1, le=MAX_DB_ID),
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    catalog = catalog_service.update_catalog(
        db,
        catalog_id=catalog_id,
        payload=payload,
        tenant_id=tenant_id,
        clock=clock,
    )
    return _catalog_to_dict(catalog)


@router.delete("/{catalog_id}", response_model=MessageResponse)
def delete_catalog(
    catalog_id: int = Path(..., ge=1, le=MAX_DB_ID),
    tenant_id: int = Depends(get_request_tenant_id),
    db: Session = Depends(get_db),
):
    return catalog_service.delete_catalog(db, catalog_id=catalog_id, tenant_id=tenant_id)
