"""
Credential Store - persistence of user records

The authentication core talks to storage only through the four calls of
CredentialStore. Implementations convert driver failures into StoreError and
duplicate emails into EmailTaken, so callers branch on error kind.
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from authflow.exceptions import EmailTaken, StoreError
from authflow.models import User


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    """Detached snapshot of a user row"""
    id: int
    email: str
    password_hash: str
    totp_secret: Optional[str] = None
    totp_enabled: bool = False

    @classmethod
    def from_model(cls, user: User) -> "UserRecord":
        return cls(
            id=user.id,
            email=user.email,
            password_hash=user.password_hash,
            totp_secret=user.totp_secret,
            totp_enabled=bool(user.totp_enabled)
        )


class CredentialStore(Protocol):
    """Query contract consumed by the authentication core"""

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        ...

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        ...

    def insert(self, email: str, password_hash: str) -> int:
        ...

    def update_totp(self, user_id: int, secret: Optional[str], enabled: bool) -> bool:
        ...


def _check_totp_pair(secret: Optional[str], enabled: bool) -> None:
    if enabled != (secret is not None):
        raise ValueError("totp_secret must be set if and only if totp_enabled is true")


class SqlCredentialStore:
    """CredentialStore backed by a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        try:
            user = self.db.execute(
                select(User)
                .where(User.email == email)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._store_error("find_by_email", e)

        return UserRecord.from_model(user) if user else None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        try:
            user = self.db.get(User, user_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise self._store_error("find_by_id", e)

        return UserRecord.from_model(user) if user else None

    def insert(self, email: str, password_hash: str) -> int:
        """
        Insert a new user with 2FA disabled

        Returns:
            New user ID, only after the row is committed

        Raises:
            EmailTaken: If the email is already registered
            StoreError: On any other database failure
        """
        user = User(email=email, password_hash=password_hash, totp_enabled=False)
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise EmailTaken()
        except SQLAlchemyError as e:
            raise self._store_error("insert", e)

        return user.id

    def update_totp(self, user_id: int, secret: Optional[str], enabled: bool) -> bool:
        """
        Set secret and enabled flag together in one UPDATE statement

        Returns:
            True if a row was updated, False if the user does not exist
        """
        _check_totp_pair(secret, enabled)

        try:
            result = self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(totp_secret=secret, totp_enabled=enabled)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._store_error("update_totp", e)

        return result.rowcount == 1

    def _store_error(self, operation: str, error: Exception) -> StoreError:
        self.db.rollback()
        logger.error(f"Credential store {operation} failed: {error.__class__.__name__}")
        return StoreError(operation=operation)


class InMemoryCredentialStore:
    """Thread-safe in-process CredentialStore, used for tests and local demos"""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[int, UserRecord] = {}
        self._next_id = 1

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user
        return None

    def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._users.get(user_id)

    def insert(self, email: str, password_hash: str) -> int:
        with self._lock:
            if any(user.email == email for user in self._users.values()):
                raise EmailTaken()

            user_id = self._next_id
            self._next_id += 1
            self._users[user_id] = UserRecord(id=user_id, email=email, password_hash=password_hash)

        return user_id

    def update_totp(self, user_id: int, secret: Optional[str], enabled: bool) -> bool:
        _check_totp_pair(secret, enabled)

        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return False
            self._users[user_id] = replace(user, totp_secret=secret, totp_enabled=enabled)

        return True
