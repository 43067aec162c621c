"""
Unit tests for API request/response models.

Tests Pydantic model validation for the identity lifecycle endpoints.
"""

import pytest
from pydantic import ValidationError

from src.api.models import (
    FlowResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)


class TestRegisterRequest:
    """Tests for RegisterRequest model."""

    def test_valid_register_request_with_aliases(self) -> None:
        """Form field names are camelCase."""
        request = RegisterRequest.model_validate(
            {"firstName": "Ann", "lastName": "Lee", "email": "ann@x.com", "password": "pw123"}
        )
        assert request.first_name == "Ann"
        assert request.last_name == "Lee"
        assert request.email == "ann@x.com"
        assert request.password == "pw123"

    def test_populate_by_field_name(self) -> None:
        request = RegisterRequest(
            first_name="Ann", last_name="Lee", email="ann@x.com", password="pw123"
        )
        assert request.first_name == "Ann"

    def test_invalid_email_rejected(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest.model_validate(
                {"firstName": "Ann", "lastName": "Lee", "email": "not-an-email", "password": "pw"}
            )
        assert "email" in str(exc_info.value)

    @pytest.mark.parametrize("missing", ["firstName", "lastName", "email", "password"])
    def test_missing_field_rejected(self, missing: str) -> None:
        data = {"firstName": "Ann", "lastName": "Lee", "email": "ann@x.com", "password": "pw123"}
        del data[missing]
        with pytest.raises(ValidationError):
            RegisterRequest.model_validate(data)

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest.model_validate(
                {"firstName": "", "lastName": "Lee", "email": "ann@x.com", "password": "pw123"}
            )

    def test_password_longer_than_72_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest.model_validate(
                {"firstName": "Ann", "lastName": "Lee", "email": "ann@x.com", "password": "x" * 73}
            )


class TestLoginRequest:
    def test_accepts_any_non_empty_email(self) -> None:
        """Login does not validate email format, so all failures look alike."""
        request = LoginRequest(email="not-an-email", password="pw")
        assert request.email == "not-an-email"

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LoginRequest(email="ann@x.com", password="")


class TestForgotPasswordRequest:
    def test_requires_email(self) -> None:
        with pytest.raises(ValidationError):
            ForgotPasswordRequest.model_validate({})


class TestResetPasswordRequest:
    def test_valid(self) -> None:
        request = ResetPasswordRequest(token="a" * 64, password="new-password")
        assert request.token == "a" * 64

    def test_empty_token_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResetPasswordRequest(token="", password="new-password")


class TestFlowResponse:
    def test_serializes(self) -> None:
        response = FlowResponse(status="success", message="ok", redirect="/login.html")
        assert response.model_dump() == {
            "status": "success",
            "message": "ok",
            "redirect": "/login.html",
        }

    def test_status_is_restricted(self) -> None:
        with pytest.raises(ValidationError):
            FlowResponse(status="maybe", message="ok", redirect="/")
