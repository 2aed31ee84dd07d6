"""Password hashing and verification.

Uses Argon2id with automatic salting; the time cost comes from
``AuthConfig.hash_cost``.
"""

from argon2 import PasswordHasher
from argon2 import exceptions as argon2_exceptions

from authgate.core.config import AuthConfig
from authgate.services.errors import HashingError, MalformedHashError

# Memory: 64 MiB, Parallelism: 4
MEMORY_COST_KIB = 65536
PARALLELISM = 4


class CredentialHasher:
    """One-way password hashing with constant-time verification."""

    def __init__(self, config: AuthConfig):
        self._ph = PasswordHasher(
            time_cost=config.hash_cost,
            memory_cost=MEMORY_COST_KIB,
            parallelism=PARALLELISM,
            hash_len=32,
            salt_len=16,
        )
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Hash a password using Argon2id."""
        try:
            return self._ph.hash(password)
        except argon2_exceptions.HashingError as e:
            raise HashingError("Failed to hash password") from e

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash.

        Returns False on mismatch. Raises MalformedHashError only when the
        stored hash itself is unreadable.
        """
        try:
            return self._ph.verify(password_hash, password)
        except argon2_exceptions.InvalidHashError as e:
            raise MalformedHashError("Stored password hash is malformed") from e
        except argon2_exceptions.VerificationError:
            return False

    def warm_up(self) -> None:
        """Build the dummy hash ahead of the first login."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("dummy-password")

    def verify_dummy(self, password: str) -> None:
        """Spend one verification so unknown accounts take as long as known ones.

        The dummy hash is built once per hasher; share one hasher across
        requests or the hash cost lands on every unknown-account login.
        """
        self.warm_up()
        self.verify(password, self._dummy_hash)
