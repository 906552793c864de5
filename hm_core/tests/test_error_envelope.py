import json

import pytest
from django.contrib.auth.models import User
from django.test import RequestFactory
from rest_framework.exceptions import ValidationError

from hm_core.common.api.exceptions import (
    InvalidAmount,
    PersistenceFailure,
    SlotTaken,
    api_exception_handler,
)
from hm_core.common.middleware import TenantScopeMiddleware


@pytest.mark.django_db
def test_middleware_missing_tenant_returns_error_envelope():
    rf = RequestFactory()
    req = rf.get("/api/v1/patients/")

    # A real User instance is authenticated; no need (and not allowed) to set is_authenticated.
    req.user = User.objects.create_user(username="u1", password="pass123")

    mw = TenantScopeMiddleware(get_response=lambda r: None)
    resp = mw.process_request(req)

    assert resp is not None
    assert resp.status_code == 400

    body = json.loads(resp.content.decode("utf-8"))
    assert "error" in body
    assert body["error"]["code"] == "tenant_required"
    assert "Missing tenant scope" in body["error"]["message"]
    assert "request_id" in body["error"]


def _handle(exc):
    req = RequestFactory().get("/api/v1/anything/")
    return api_exception_handler(exc, {"request": req, "view": None})


def test_domain_error_keeps_specific_code():
    resp = _handle(InvalidAmount({"amount": "Must be >= 0."}))
    assert resp.status_code == 400
    assert resp.data["error"]["code"] == "invalid_amount"
    assert resp.data["error"]["details"] == {"amount": ["Must be >= 0."]}


def test_plain_validation_error_is_generic():
    resp = _handle(ValidationError({"name": "required"}))
    assert resp.data["error"]["code"] == "validation_error"


def test_conflict_is_409():
    resp = _handle(SlotTaken(conflict=None))
    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "time_slot_taken"
    assert resp.data["error"]["message"] == "Time slot already taken for this doctor."


def test_persistence_failure_is_500():
    resp = _handle(PersistenceFailure())
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "persistence_failure"


def test_unhandled_error_is_500_envelope():
    resp = _handle(RuntimeError("boom"))
    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "server_error"
    assert resp.data["error"]["request_id"]


@pytest.mark.django_db
def test_unauthenticated_request_uses_envelope(client):
    r = client.get("/api/v1/doctors/")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "not_authenticated"
