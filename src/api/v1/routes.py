"""
API v1 routes.

Defines the HTTP endpoints of the identity lifecycle API. Expected
outcomes, successful or not, are answered with a FlowResponse telling the
client what to show and where to go next. Messages are fixed strings;
nothing from the request or from internal errors is echoed back.
"""

import logging

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_authentication_service,
    get_password_reset_service,
    get_registration_service,
)
from src.api.models import (
    ErrorResponse,
    FlowResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from src.domain.authentication import AuthenticationService
from src.domain.exceptions import (
    EmailAlreadyClaimed,
    InvalidCredentials,
    InvalidInput,
    InvalidOrExpiredToken,
    InvalidToken,
    NotificationDeliveryError,
    UnknownAccount,
)
from src.domain.password_reset import PasswordResetService
from src.domain.registration import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["v1"])

MISSING_FIELDS_MESSAGE = "Please fill in all required fields with valid values."
DELIVERY_FAILED_MESSAGE = "We could not send the email. Please try again later."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
INVALID_RESET_TOKEN_MESSAGE = (
    "Password reset token is invalid or has expired. Please request a new password reset link."
)
RESET_REQUESTED_MESSAGE = "If an account exists for that email, a reset link has been sent."

# Where each form sends the user back to when its request fails.
FAILURE_REDIRECTS = {
    "/register": "/register.html",
    "/verify-email": "/register.html",
    "/login": "/login.html",
    "/forgot-password": "/forgot-password.html",
    "/reset": "/forgot-password.html",
    "/reset-password": "/forgot-password.html",
}

_FLOW_RESPONSES = {500: {"model": ErrorResponse, "description": "Unexpected server error"}}


def success(message: str, redirect: str) -> FlowResponse:
    return FlowResponse(status="success", message=message, redirect=redirect)


def failure(message: str, redirect: str) -> FlowResponse:
    return FlowResponse(status="error", message=message, redirect=redirect)


@router.post(
    "/register",
    response_model=FlowResponse,
    responses=_FLOW_RESPONSES,
    summary="Register a new user",
    description="Submit name, email and password. A verification link is emailed; "
    "the account becomes usable once the link is followed.",
)
def register(
    request_data: RegisterRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> FlowResponse:
    """
    Begin registration and send the verification link.

    - **firstName**, **lastName**: non-empty names
    - **email**: valid email address, not yet registered
    - **password**: non-empty password
    """
    redirect = FAILURE_REDIRECTS["/register"]
    try:
        service.submit(
            request_data.first_name,
            request_data.last_name,
            request_data.email,
            request_data.password,
        )
    except InvalidInput:
        return failure(MISSING_FIELDS_MESSAGE, redirect)
    except EmailAlreadyClaimed:
        return failure("Email is already registered.", redirect)
    except NotificationDeliveryError:
        return failure(DELIVERY_FAILED_MESSAGE, redirect)
    return success(
        "Registration successful! Please check your email for verification.", "/login.html"
    )


@router.get(
    "/verify-email/{token}",
    response_model=FlowResponse,
    responses=_FLOW_RESPONSES,
    summary="Verify email address",
    description="Consume the emailed verification token and activate the account.",
)
def verify_email(
    token: str,
    service: RegistrationService = Depends(get_registration_service),
) -> FlowResponse:
    try:
        service.verify_token(token)
    except InvalidToken:
        return failure(
            "Email verification token is invalid.", FAILURE_REDIRECTS["/verify-email"]
        )
    return success("Email has been verified successfully!", "/login.html")


@router.post(
    "/login",
    response_model=FlowResponse,
    responses=_FLOW_RESPONSES,
    summary="Log in",
    description="Check email and password. Unknown emails and wrong passwords "
    "receive the identical response.",
)
def login(
    request_data: LoginRequest,
    service: AuthenticationService = Depends(get_authentication_service),
) -> FlowResponse:
    try:
        service.login(request_data.email, request_data.password)
    except InvalidCredentials:
        return failure(INVALID_CREDENTIALS_MESSAGE, FAILURE_REDIRECTS["/login"])
    return success("Login successful.", "/dashboard.html")


@router.post(
    "/forgot-password",
    response_model=FlowResponse,
    responses=_FLOW_RESPONSES,
    summary="Request a password reset",
    description="Email a single-use reset link valid for one hour. The response "
    "does not reveal whether the email belongs to an account.",
)
def forgot_password(
    request_data: ForgotPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> FlowResponse:
    try:
        service.request_reset(request_data.email)
    except UnknownAccount:
        pass
    except NotificationDeliveryError:
        # Same answer as for an unknown email.
        logger.error("Password reset email could not be delivered")
    return success(RESET_REQUESTED_MESSAGE, "/login.html")


@router.get(
    "/reset/{token}",
    response_model=FlowResponse,
    responses=_FLOW_RESPONSES,
    summary="Check a password reset token",
    description="Confirm the token is current before showing the new-password form. "
    "The token is not consumed.",
)
def check_reset_token(
    token: str,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> FlowResponse:
    try:
        service.check_reset_token(token)
    except InvalidOrExpiredToken:
        return failure(INVALID_RESET_TOKEN_MESSAGE, FAILURE_REDIRECTS["/reset"])
    return success("Please choose a new password.", f"/reset.html?token={token}")


@router.post(
    "/reset-password",
    response_model=FlowResponse,
    responses=_FLOW_RESPONSES,
    summary="Set a new password",
    description="Consume a reset token and replace the account password.",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
) -> FlowResponse:
    redirect = FAILURE_REDIRECTS["/reset-password"]
    try:
        service.consume_reset(request_data.token, request_data.password)
    except InvalidInput:
        return failure(MISSING_FIELDS_MESSAGE, redirect)
    except InvalidOrExpiredToken:
        return failure(INVALID_RESET_TOKEN_MESSAGE, redirect)
    return success("Password has been reset successfully!", "/login.html")
