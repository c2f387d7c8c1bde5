import json
import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from catalogs_api.core.database import get_db
from catalogs_api.core.logging_setup import JsonFormatter
from catalogs_api.models.user import User
from catalogs_api.routers.auth import router as auth_router
from catalogs_api.routers.catalogs import router as catalogs_router
from catalogs_api.services.auth import UserIdentity, create_access_token, hash_password
from tests.fixtures_data import HAPPY_PATH_CATALOG_PAYLOAD, HAPPY_PATH_USER, OTHER_TENANT_USER
from tests.helpers import add_catalog


@pytest.fixture
def client(db):
    for data in (HAPPY_PATH_USER, OTHER_TENANT_USER):
        db.add(
            User(
                id=data["id"],
                tenant_id=data["tenant_id"],
                username=data["username"],
                email=data["email"],
                password_hash=hash_password(data["password"]),
            )
        )
    db.commit()

    app = FastAPI()
    app.include_router(auth_router)
    app.include_router(catalogs_router)

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    return TestClient(app)


def _login(client, email, password):
    return client.post("/auth/login", json={"email": email, "password": password})


def test_login_returns_username_and_token(client):
    response = _login(client, HAPPY_PATH_USER["email"], HAPPY_PATH_USER["password"])

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == HAPPY_PATH_USER["username"]
    assert body["token"]


def test_login_token_scopes_catalog_listing_to_tenant(client, db):
    add_catalog(db, name="Acme Catalog", tenant_id=1)
    add_catalog(db, name="Globex Catalog", tenant_id=2)
    token = _login(client, HAPPY_PATH_USER["email"], HAPPY_PATH_USER["password"]).json()["token"]

    response = client.get("/catalogs", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["data"]] == ["Acme Catalog"]


def test_wrong_password_and_unknown_email_fail_identically(client):
    wrong_password = _login(client, HAPPY_PATH_USER["email"], "wrong-pass")
    unknown_email = _login(client, "nobody@acme.com", HAPPY_PATH_USER["password"])

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"detail": "Invalid credentials"}


def test_login_validates_payload(client):
    assert client.post("/auth/login", json={"email": "not-an-email", "password": "x"}).status_code == 422
    assert client.post("/auth/login", json={"email": HAPPY_PATH_USER["email"], "password": ""}).status_code == 422


def test_token_claiming_another_tenant_is_rejected(client):
    forged = create_access_token(
        UserIdentity(
            id=HAPPY_PATH_USER["id"],
            username=HAPPY_PATH_USER["username"],
            email=HAPPY_PATH_USER["email"],
            tenant_id=OTHER_TENANT_USER["tenant_id"],
        )
    )

    response = client.get("/catalogs", headers={"Authorization": f"Bearer {forged}"})

    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid session"}


def test_token_for_deleted_user_is_rejected(client, db):
    token = _login(client, OTHER_TENANT_USER["email"], OTHER_TENANT_USER["password"]).json()["token"]
    db.query(User).filter(User.id == OTHER_TENANT_USER["id"]).delete()
    db.commit()

    response = client.get("/catalogs", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"detail": "User not found"}


def test_oauth2_token_form_flow(client):
    response = client.post(
        "/auth/token",
        data={"username": HAPPY_PATH_USER["email"], "password": HAPPY_PATH_USER["password"]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    listing = client.get("/catalogs", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert listing.status_code == 200


def test_oauth2_token_form_rejects_bad_credentials(client):
    response = client.post("/auth/token", data={"username": HAPPY_PATH_USER["email"], "password": "nope"})

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


class _JsonLines(logging.Handler):
    """Formats at emit time, while the request's log context is still bound."""

    def __init__(self):
        super().__init__(level=logging.INFO)
        self.setFormatter(JsonFormatter("%(message)s"))
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


def test_service_logs_carry_tenant_and_user_of_the_session(client):
    token = _login(client, HAPPY_PATH_USER["email"], HAPPY_PATH_USER["password"]).json()["token"]
    service_logger = logging.getLogger("catalogs_api.services.catalogs")
    handler = _JsonLines()
    previous_level = service_logger.level
    service_logger.addHandler(handler)
    service_logger.setLevel(logging.INFO)
    try:
        response = client.post(
            "/catalogs",
            json=HAPPY_PATH_CATALOG_PAYLOAD,
            headers={"Authorization": f"Bearer {token}"},
        )
    finally:
        service_logger.removeHandler(handler)
        service_logger.setLevel(previous_level)

    assert response.status_code == 201
    created = [line for line in handler.lines if line["message"].startswith("Catalog created")]
    assert len(created) == 1
    assert created[0]["tenant_id"] == str(HAPPY_PATH_USER["tenant_id"])
    assert created[0]["user_id"] == str(HAPPY_PATH_USER["id"])
