"""Local login, signup and logout against accounts kept in workspace storage.

This is a single-user demo boundary, not a security layer: accounts live in
the ``integral_users`` entry next to the rest of the workspace data.
"""
from __future__ import annotations

import hashlib
import logging
import secrets
import time
import typing as t

from workspace.models import User
from workspace.records import AccountCollection, AccountRecord, UserRecord, migrate_collection
from workspace.storage import ACCOUNTS_KEY, USER_KEY, Storage, read_json, write_json

logger = logging.getLogger(__name__)

DEFAULT_AVATAR = "/placeholder.svg?height=100&width=100"
DEMO_EMAIL = "demo@example.com"
DEMO_PASSWORD = "password"
DEMO_USER = User(id="1", name="Demo User", email=DEMO_EMAIL, avatar=DEFAULT_AVATAR)

PBKDF2_ITERATIONS = 100_000


class AuthenticationError(ValueError):
    """Raised when a login or signup is refused."""


def hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS)
    return digest.hex()


class AuthService:
    """Holds the logged-in user and the registered accounts."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self.user: t.Optional[User] = self._load_user()

    def _load_user(self) -> t.Optional[User]:
        try:
            data = read_json(self.storage, USER_KEY)
            if data is None:
                return None
            return UserRecord.model_validate(data).to_user()
        except ValueError as e:
            logger.warning(f"Failed to parse stored user, clearing it: {e}")
            self.storage.remove_item(USER_KEY)
            return None

    def _load_accounts(self) -> list[AccountRecord]:
        try:
            data = read_json(self.storage, ACCOUNTS_KEY)
            if data is None:
                return []
            return AccountCollection.model_validate(migrate_collection(data)).items
        except ValueError as e:
            logger.warning(f"Failed to parse stored accounts: {e}")
            return []

    def _remember(self, user: User) -> None:
        write_json(self.storage, USER_KEY, UserRecord.from_user(user).model_dump())

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def login(self, email: str, password: str, remember: bool = False) -> User:
        """Log in with the demo account or a registered account.

        The user is written to storage only when ``remember`` is set.

        Raises:
            AuthenticationError: If the credentials do not match.
        """
        user: t.Optional[User] = None
        if email == DEMO_EMAIL and password == DEMO_PASSWORD:
            user = DEMO_USER
        else:
            for account in self._load_accounts():
                if account.email == email:
                    if secrets.compare_digest(
                        hash_password(password, account.password_salt), account.password_hash
                    ):
                        user = User(
                            id=account.id,
                            name=account.name,
                            email=account.email,
                            avatar=account.avatar or DEFAULT_AVATAR,
                        )
                    break

        if user is None:
            raise AuthenticationError("Invalid email or password")

        self.user = user
        if remember:
            self._remember(user)
        logger.info(f"Logged in as {user.email}")
        return user

    def signup(self, name: str, email: str, password: str) -> User:
        """Register an account and log it in.

        Raises:
            AuthenticationError: If the email is already registered.
        """
        accounts = self._load_accounts()
        if email == DEMO_EMAIL or any(account.email == email for account in accounts):
            raise AuthenticationError("Email is already in use")

        salt = secrets.token_hex(16)
        account = AccountRecord(
            id=str(int(time.time() * 1000)),
            name=name,
            email=email,
            avatar=DEFAULT_AVATAR,
            password_salt=salt,
            password_hash=hash_password(password, salt),
        )
        accounts.append(account)
        write_json(self.storage, ACCOUNTS_KEY, AccountCollection(items=accounts).model_dump())

        user = User(id=account.id, name=name, email=email, avatar=DEFAULT_AVATAR)
        self.user = user
        self._remember(user)
        return user

    def logout(self) -> None:
        self.storage.remove_item(USER_KEY)
        self.user = None
