import pytest
from pydantic import ValidationError

from catalogs_api.models.catalog import Vertical
from catalogs_api.schemas.catalog import CatalogCreate, CatalogRead, CatalogUpdate
from tests.fixtures_data import HAPPY_PATH_CATALOG_PAYLOAD


def test_catalog_create_normalizes_fields():
    payload = CatalogCreate(
        **{**HAPPY_PATH_CATALOG_PAYLOAD, "name": "  Summer Collection ", "locales": [" en_US", "en_US", "es_ES"]}
    )

    assert payload.name == "Summer Collection"
    assert payload.vertical is Vertical.FASHION
    assert payload.locales == ["en_US", "es_ES"]


@pytest.mark.parametrize(
    "override",
    [
        {"locales": []},
        {"locales": ["en_US", "  "]},
        {"name": "   "},
        {"name": ""},
        {"vertical": "toys"},
    ],
)
def test_catalog_create_rejects_invalid_input(override):
    with pytest.raises(ValidationError):
        CatalogCreate(**{**HAPPY_PATH_CATALOG_PAYLOAD, **override})


def test_catalog_create_primary_defaults_to_false():
    payload = CatalogCreate(name="Basics", vertical="general", locales=["en_US"])

    assert payload.primary is False


def test_catalog_update_tracks_only_supplied_fields():
    payload = CatalogUpdate(primary=True)

    assert payload.model_dump(exclude_unset=True) == {"primary": True}


@pytest.mark.parametrize("field", ["name", "vertical", "primary", "locales"])
def test_catalog_update_rejects_explicit_null(field):
    with pytest.raises(ValidationError):
        CatalogUpdate(**{field: None})


def test_catalog_read_serializes_camel_case():
    record = CatalogRead(
        id=1,
        tenant_id=2,
        name="Basics",
        vertical=Vertical.GENERAL,
        primary=False,
        locales=["en_US"],
    )

    dumped = record.model_dump(by_alias=True, mode="json")

    assert dumped["tenantId"] == 2
    assert dumped["vertical"] == "general"
    assert dumped["indexedAt"] is None
