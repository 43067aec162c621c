"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting domain services
into routes. Stores, gateway and security primitives are built once in
the application lifespan and kept on app.state; services are cheap and
assembled per request.
"""

from datetime import timedelta

from fastapi import Request

from src.config.settings import Settings
from src.domain.authentication import AuthenticationService
from src.domain.password_reset import PasswordResetService
from src.domain.registration import RegistrationService


def get_settings_from_state(request: Request) -> Settings:
    """
    Get the settings instance the application was started with.

    Stored in app.state by the lifespan; never re-read from the environment.
    """
    return request.app.state.settings


def get_registration_service(request: Request) -> RegistrationService:
    """
    Create registration service with injected dependencies.

    Wires together the pending store, hasher, token generator and
    notification gateway for the domain service.
    """
    state = request.app.state
    settings = get_settings_from_state(request)
    retention = (
        timedelta(hours=settings.pending_retention_hours)
        if settings.pending_retention_hours
        else None
    )
    return RegistrationService(
        pending_store=state.pending_store,
        hasher=state.hasher,
        token_generator=state.token_generator,
        notifier=state.notifier,
        base_url=settings.public_base_url,
        pending_retention=retention,
    )


def get_authentication_service(request: Request) -> AuthenticationService:
    """Create authentication service over the credential store."""
    state = request.app.state
    return AuthenticationService(credential_store=state.credential_store, hasher=state.hasher)


def get_password_reset_service(request: Request) -> PasswordResetService:
    """Create password reset service with injected dependencies."""
    state = request.app.state
    settings = get_settings_from_state(request)
    return PasswordResetService(
        credential_store=state.credential_store,
        hasher=state.hasher,
        token_generator=state.token_generator,
        notifier=state.notifier,
        base_url=settings.public_base_url,
        token_ttl=timedelta(seconds=settings.reset_token_ttl_seconds),
    )
