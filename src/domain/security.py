"""
Secret handling primitives - password hashing and token generation.

BcryptSecretHasher implements the SecretHasher port; SecureTokenGenerator
implements the TokenGenerator port. Both are stateless apart from their
configuration and safe to share across threads.
"""

import secrets

import bcrypt

from .exceptions import InvalidInput

MIN_BCRYPT_COST = 10
MIN_TOKEN_BYTES = 32
MAX_PASSWORD_BYTES = 72  # bcrypt ignores (or rejects) anything longer


class BcryptSecretHasher:
    """
    Salted bcrypt hashing with a configurable work factor.

    bcrypt.checkpw compares in constant time; with cost 10 a comparison
    takes roughly 100ms, which dominates request latency.
    """

    def __init__(self, rounds: int = MIN_BCRYPT_COST) -> None:
        if rounds < MIN_BCRYPT_COST:
            raise ValueError(f"bcrypt cost must be at least {MIN_BCRYPT_COST}")
        self._rounds = rounds
        # Compared against when no stored hash exists, so that path costs
        # the same as a real comparison.
        self._dummy_hash = self.hash(secrets.token_hex(16))

    def hash(self, plaintext: str) -> str:
        if len(plaintext.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise InvalidInput(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")

    def verify(self, plaintext: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Malformed hash
            return False

    def verify_dummy(self, plaintext: str) -> bool:
        self.verify(plaintext, self._dummy_hash)
        return False


class SecureTokenGenerator:
    """Hex tokens from the operating system's CSPRNG."""

    def __init__(self, nbytes: int = MIN_TOKEN_BYTES) -> None:
        if nbytes < MIN_TOKEN_BYTES:
            raise ValueError(f"tokens need at least {MIN_TOKEN_BYTES} bytes of entropy")
        self._nbytes = nbytes

    def generate(self) -> str:
        """Return ``2 * nbytes`` lowercase hex characters."""
        return secrets.token_hex(self._nbytes)
