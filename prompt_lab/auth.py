"""
Session gate.

A deliberately simple local account store: users and the current session live
in the same key-value store as the workspace data. Errors are meant to be
shown inline on the login form.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

import bcrypt

from .models import User
from .storage import SESSION_KEY, USERS_KEY, KeyValueStore

log = logging.getLogger(__name__)


class AuthError(Exception):
    """Base exception for login/registration failures."""
    pass


class ValidationError(AuthError):
    """Raised when a required form field is empty."""
    pass


class UserExistsError(AuthError):
    """Raised when registering an email that is already taken."""
    pass


class InvalidCredentialsError(AuthError):
    """Raised when email and password do not match."""
    pass


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash in the store
        return False


class SessionService:
    """Register, log in, log out and look up the current session."""

    def __init__(self, store: KeyValueStore, login_delay: float = 0.6):
        self.store = store
        self.login_delay = login_delay

    def _users(self) -> List[Dict[str, Any]]:
        return self.store.get(USERS_KEY) or []

    def _start_session(self, record: Dict[str, Any]) -> User:
        user = User(id=record["id"], name=record["name"], email=record["email"])
        self.store.set(SESSION_KEY, user.to_store())
        return user

    async def _delay(self) -> None:
        if self.login_delay > 0:
            await asyncio.sleep(self.login_delay)

    async def register(self, name: str, email: str, password: str) -> User:
        """Create an account and log it in."""
        await self._delay()
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email or not password:
            raise ValidationError("Please fill in all fields")

        users = self._users()
        if any(u.get("email") == email for u in users):
            raise UserExistsError("User already exists")

        record = {
            "id": str(uuid.uuid4()),
            "name": name,
            "email": email,
            "passwordHash": hash_password(password),
        }
        users.append(record)
        self.store.set(USERS_KEY, users)
        log.info("Registered user %s", email)
        return self._start_session(record)

    async def login(self, email: str, password: str) -> User:
        """Log in with email and password."""
        await self._delay()
        if not email or not password:
            raise ValidationError("Please fill in all fields")

        email = email.strip()
        for record in self._users():
            if record.get("email") == email and verify_password(password, record.get("passwordHash", "")):
                log.info("User %s logged in", email)
                return self._start_session(record)

        log.info("Failed login for %s", email)
        raise InvalidCredentialsError("Invalid email or password")

    def logout(self) -> None:
        self.store.delete(SESSION_KEY)

    def get_current_session(self) -> Optional[User]:
        raw = self.store.get(SESSION_KEY)
        return User.model_validate(raw) if raw else None
