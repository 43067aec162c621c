"""
Authentication domain service - email/password login.

Unknown emails and wrong passwords raise the same InvalidCredentials and
cost the same single bcrypt comparison, so neither the message nor the
response time tells them apart.
"""

import logging
from dataclasses import dataclass

from .exceptions import InvalidCredentials
from .models import Credential, normalize_email
from .ports import CredentialStore, SecretHasher

logger = logging.getLogger(__name__)


@dataclass
class AuthenticationService:
    """Domain service checking a password against the credential store."""

    credential_store: CredentialStore
    hasher: SecretHasher

    def login(self, email: str, password: str) -> Credential:
        """
        Authenticate an identity.

        Returns:
            The matching Credential

        Raises:
            InvalidCredentials: Unknown email or wrong password
        """
        normalized_email = normalize_email(email or "")
        credential = self.credential_store.find_by_email(normalized_email) if normalized_email else None

        if credential is None:
            self.hasher.verify_dummy(password or "")
            password_valid = False
        else:
            password_valid = self.hasher.verify(password or "", credential.password_hash)

        if credential is None or not password_valid:
            logger.warning("Failed login attempt")
            raise InvalidCredentials("invalid email or password")

        logger.info("Login succeeded: %s", credential.email)
        return credential
