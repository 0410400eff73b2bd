"""
Shared pytest fixtures for the grievance tracker test suite.

Every test gets its own app bound to a fresh in-memory SQLite database, a
Flask test client, and factories that register accounts and file grievances
through the public API.
"""
import itertools
from collections import namedtuple

import pytest

from app import create_app
from extensions import db
from models import ROLE_GOVERNMENT_OFFICIAL, ROLE_LOCALITY_MEMBER

PASSWORD = "Secret123"

Account = namedtuple("Account", ["token", "user", "headers"])

_email_counter = itertools.count(1)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def grievance_payload(**overrides) -> dict:
    payload = {
        "name": "Asha Rao",
        "street": "12 MG Road",
        "locality": "Indiranagar",
        "city": "Bengaluru",
        "state": "Karnataka",
        "department": "Water-Works",
        "description": "Water pipeline burst near the bus stop.",
        "phoneNumber": "9876543210",
        "imageUrl": "https://img.grievances.org/filed/1.jpg",
        "imagePublicId": "grievances/filed/1",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def app():
    """App with an isolated in-memory database (tables created by the factory)."""
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def ctx(app):
    """Push an app context for tests that call services directly."""
    with app.app_context():
        yield


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def register_account(client):
    """Factory: register over the API and return an Account."""

    def _register(role=ROLE_LOCALITY_MEMBER, name="Citizen", email=None, password=PASSWORD):
        email = email or f"user{next(_email_counter)}@grievances.org"
        resp = client.post(
            "/api/auth/register",
            json={
                "name": name,
                "email": email,
                "password": password,
                "phoneNumber": "9876543210",
                "address": "4th Cross, Indiranagar",
                "signInType": role,
            },
        )
        assert resp.status_code == 201, resp.get_json()
        data = resp.get_json()["data"]
        return Account(data["token"], data["user"], bearer(data["token"]))

    return _register


@pytest.fixture()
def citizen(register_account):
    return register_account(name="Citizen One")


@pytest.fixture()
def other_citizen(register_account):
    return register_account(name="Citizen Two")


@pytest.fixture()
def official(register_account):
    return register_account(role=ROLE_GOVERNMENT_OFFICIAL, name="Ward Officer")


@pytest.fixture()
def grievance_body():
    """The payload builder, for tests that post grievances themselves."""
    return grievance_payload


@pytest.fixture()
def file_grievance(client):
    """Factory: file a grievance as ``account`` and return its payload."""

    def _file(account, **overrides):
        resp = client.post("/api/grievance", json=grievance_payload(**overrides), headers=account.headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()["data"]

    return _file
