from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from catalogs_api.models.catalog import Vertical

# Largest value a signed 64-bit INTEGER column can hold.
MAX_DB_ID = 2**63 - 1

CatalogId = Annotated[int, Field(ge=1, le=MAX_DB_ID)]


def normalize_locales(values: list[str]) -> list[str]:
    """Strip codes and drop duplicates while keeping the caller's order."""
    normalized: list[str] = []
    for value in values:
        code = (value or "").strip()
        if not code:
            raise ValueError("Locale codes must not be blank")
        if code not in normalized:
            normalized.append(code)
    if not normalized:
        raise ValueError("At least one locale is required")
    return normalized


def _normalize_name(value: str) -> str:
    candidate = value.strip()
    if not candidate:
        raise ValueError("Name must not be blank")
    return candidate


class CatalogCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    vertical: Vertical
    primary: bool = False
    locales: list[str]

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)

    @field_validator("locales")
    @classmethod
    def validate_locales(cls, value: list[str]) -> list[str]:
        return normalize_locales(value)


class CatalogUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    vertical: Optional[Vertical] = None
    primary: Optional[bool] = None
    locales: Optional[list[str]] = None

    @field_validator("name", "vertical", "primary", "locales", mode="before")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field may be omitted but not null")
        return value

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _normalize_name(value)

    @field_validator("locales")
    @classmethod
    def validate_locales(cls, value: list[str]) -> list[str]:
        return normalize_locales(value)


class CatalogIds(BaseModel):
    ids: list[CatalogId] = Field(default_factory=list)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CatalogRead(_CamelModel):
    id: int
    tenant_id: int
    name: str
    vertical: Vertical
    primary: bool
    locales: list[str]
    indexed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CatalogPage(_CamelModel):
    data: list[CatalogRead]
    total: int


class MessageResponse(_CamelModel):
    message: str


class BulkDeleteResponse(_CamelModel):
    message: str
    deleted_count: int


class IndexedCatalog(_CamelModel):
    id: int
    indexed_at: datetime


class IndexSelectedResponse(_CamelModel):
    message: str
    indexed_catalogs: list[IndexedCatalog]
