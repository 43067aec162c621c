"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Field aliases keep the camelCase names the HTML forms post.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72, description="User password")


class LoginRequest(BaseModel):
    """Request model for login. Email format is not validated here so that
    every failed login, malformed or not, gets the same answer."""

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    """Request model for a password reset request."""

    email: str = Field(..., min_length=1)


class ResetPasswordRequest(BaseModel):
    """Request model for setting a new password with a reset token."""

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1, max_length=72)


class FlowResponse(BaseModel):
    """
    Outcome of a user-facing flow.

    The client shows ``message`` and navigates to ``redirect``. Used for
    both successes and expected failures.
    """

    status: Literal["success", "error"]
    message: str
    redirect: str


class ErrorResponse(BaseModel):
    """Standard error response model for unexpected failures."""

    detail: str
