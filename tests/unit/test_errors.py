"""Unit tests for AppError hierarchy and the registered exception handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from errors import (
    AlreadyUsedError,
    AppError,
    AuthenticationError,
    ConflictError,
    ExpiredError,
    ExternalServiceError,
    InvalidSignatureError,
    NotFoundError,
    RateLimitError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (ValidationError, 400, "validation_error"),
            (InvalidSignatureError, 400, "invalid_signature"),
            (AuthenticationError, 401, "authentication_error"),
            (NotFoundError, 404, "not_found"),
            (ConflictError, 409, "conflict"),
            (AlreadyUsedError, 409, "otp_already_used"),
            (ExpiredError, 410, "otp_expired"),
            (RateLimitError, 429, "rate_limit_exceeded"),
            (ExternalServiceError, 502, "external_service_error"),
        ],
    )
    def test_status_and_code(self, cls, status, code):
        e = cls("boom")
        assert isinstance(e, AppError)
        assert e.status_code == status
        assert e.error_code == code
        assert e.message == "boom"

    def test_invalid_signature_is_a_validation_error(self):
        assert issubclass(InvalidSignatureError, ValidationError)

    def test_external_service_carries_service(self):
        assert ExternalServiceError("down", service="inventory").service == "inventory"


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("profile not found")
        assert e.to_dict() == {"error": "profile not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "profileId"}, "field", "profileId"),
            ({"details": {"tenancyId": "t1"}}, "details", {"tenancyId": "t1"}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ConflictError("conflict", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


class _Body(BaseModel):
    amount: int


def _app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/expired")
    async def expired():
        raise ExpiredError("code expired")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("kaboom")

    @app.post("/body")
    async def body(payload: _Body):
        return {"ok": True}

    return app


class TestHandlers:
    def test_app_error_rendered(self):
        with TestClient(_app()) as client:
            resp = client.get("/expired")
        assert resp.status_code == 410
        assert resp.json() == {"error": "code expired", "code": "otp_expired"}

    def test_request_validation_maps_to_400(self):
        with TestClient(_app()) as client:
            resp = client.post("/body", json={"amount": "lots"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert resp.json()["field"] == "amount"

    def test_unhandled_is_500(self):
        with TestClient(_app(), raise_server_exceptions=False) as client:
            resp = client.get("/crash")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
