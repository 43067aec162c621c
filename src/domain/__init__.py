"""
Domain layer - Pure business logic with zero framework imports.

This package contains the identity lifecycle core: two-phase registration,
login, and password reset. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .authentication import AuthenticationService
from .exceptions import (
    EmailAlreadyClaimed,
    IdentityError,
    InvalidCredentials,
    InvalidInput,
    InvalidOrExpiredToken,
    InvalidToken,
    NotificationDeliveryError,
    StorageError,
    UnknownAccount,
)
from .models import Credential, PendingRegistration, ResetState
from .password_reset import PasswordResetService
from .ports import (
    CredentialStore,
    NotificationGateway,
    PendingRegistrationStore,
    SecretHasher,
    TokenGenerator,
)
from .registration import RegistrationService
from .security import BcryptSecretHasher, SecureTokenGenerator

__all__ = [
    "AuthenticationService",
    "BcryptSecretHasher",
    "Credential",
    "CredentialStore",
    "EmailAlreadyClaimed",
    "IdentityError",
    "InvalidCredentials",
    "InvalidInput",
    "InvalidOrExpiredToken",
    "InvalidToken",
    "NotificationDeliveryError",
    "NotificationGateway",
    "PasswordResetService",
    "PendingRegistration",
    "PendingRegistrationStore",
    "RegistrationService",
    "ResetState",
    "SecretHasher",
    "SecureTokenGenerator",
    "StorageError",
    "TokenGenerator",
    "UnknownAccount",
]
