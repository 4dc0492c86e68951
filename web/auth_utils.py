"""Authentication utilities for password hashing and moderator credential checks."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import bcrypt

from web.persistence import PersistenceError, PersistenceGateway

logger = logging.getLogger(__name__)

# Password hashing configuration
BCRYPT_ROUNDS = 12

INVALID_CREDENTIALS = "Invalid credentials"

# Security logger for auth events
security_logger = logging.getLogger("security")


class AuthenticationError(Exception):
    """Custom exception for authentication failures."""

    def __init__(self, detail: str = INVALID_CREDENTIALS):
        super().__init__(detail)
        self.detail = detail


@dataclass(frozen=True)
class ModeratorIdentity:
    """An authenticated moderator."""

    username: str
    user_id: int


class PasswordUtils:
    """Utilities for password hashing and verification."""

    @staticmethod
    def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
        """Hash a password using bcrypt."""
        salt = bcrypt.gensalt(rounds=rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash. Malformed hashes never verify."""
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"), hashed_password.encode("utf-8")
            )
        except ValueError as e:
            logger.error(f"Error while comparing bcrypt passwords: {e}")
            return False


class CredentialVerifier:
    """Checks a moderator's username and password against stored hashes.

    The bcrypt comparison is CPU bound and runs in a worker thread. Unknown
    usernames are compared against a dummy hash of the same cost so that
    they fail exactly like a wrong password.
    """

    def __init__(self, persistence: PersistenceGateway, rounds: int = BCRYPT_ROUNDS):
        self.persistence = persistence
        self._dummy_hash = PasswordUtils.hash_password("dummy-password-never-matches", rounds)

    async def verify(self, username: str, password: str) -> ModeratorIdentity:
        """
        Verify credentials and resolve the moderator identity.

        Raises:
            AuthenticationError: If the username or password is invalid, or
                the credential store is unavailable
        """
        try:
            stored_hash = await self.persistence.get_admin_password(username)
        except PersistenceError as e:
            logger.error(f"Credential lookup failed for {username}: {e}")
            raise AuthenticationError()

        valid = await asyncio.to_thread(
            PasswordUtils.verify_password, password, stored_hash or self._dummy_hash
        )

        if stored_hash is None:
            log_security_event("login_failed", {"username": username, "reason": "invalid_username"})
            raise AuthenticationError()

        if not valid:
            log_security_event("login_failed", {"username": username, "reason": "invalid_password"})
            raise AuthenticationError()

        try:
            user_id = await self.persistence.get_admin_id(username)
        except PersistenceError as e:
            logger.error(f"Admin id lookup failed for {username}: {e}")
            raise AuthenticationError()

        if user_id is None:
            # Account removed between the two lookups
            raise AuthenticationError()

        log_security_event("login_success", {"username": username, "user_id": user_id})
        return ModeratorIdentity(username=username, user_id=user_id)


def log_security_event(event_type: str, details: dict[str, Any], client: str | None = None):
    """
    Log security-related events for monitoring and auditing.

    Args:
        event_type: Type of security event (e.g., "login_failed")
        details: Dictionary of event details (avoid sensitive data)
        client: Optional client address
    """
    log_data = {
        "event_type": event_type,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **details,
    }

    if client:
        log_data["client_ip"] = client

    security_logger.info(f"Security event: {log_data}")
