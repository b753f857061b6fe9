"""
Users service - business logic for user management

Every operation is one load -> validate -> mutate -> save cycle against the
user store. A failure at any step returns before save, so the stored
collection is left as it was.
"""

import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from models.enums import ErrorKind, ValidationMode
from models.user import User
from services.base_service import BaseService, ServiceResult
from services.id_allocator import next_id
from services.user_validator import validate_user
from storage.connection import get_user_store
from storage.json_store import StorageError, UserStore
from utils.helpers import to_iso_timestamp, utc_now

logger = logging.getLogger(__name__)

INVALID_ID_MESSAGE = "Invalid user ID format. ID must be a number."
DUPLICATE_EMAIL_MESSAGE = "Email already exists"
NO_FIELDS_MESSAGE = "At least one field (name, email, or age) must be provided for update"
VALIDATION_FAILED_MESSAGE = "Validation failed"

UPDATABLE_FIELDS = ("name", "email", "age")

_ID_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")


def parse_user_id(raw_id: Any) -> Optional[int]:
    """Parse a path id into an int, None when it is not a plain integer"""
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, int):
        return raw_id
    if isinstance(raw_id, str) and _ID_PATTERN.fullmatch(raw_id):
        return int(raw_id)
    return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def not_found_message(user_id: int) -> str:
    return f"User with ID {user_id} not found"


class UsersService(BaseService):
    """Service for user management operations"""

    def __init__(self, store: UserStore, clock: Callable[[], datetime] = utc_now):
        super().__init__("users", store, clock)

    def _now(self) -> str:
        return to_iso_timestamp(self.clock())

    @staticmethod
    def _find_index(users: List[User], user_id: int) -> int:
        for index, user in enumerate(users):
            if user.id == user_id:
                return index
        return -1

    @staticmethod
    def _email_taken(users: List[User], email: str, exclude_id: Optional[int] = None) -> bool:
        wanted = normalize_email(email)
        return any(
            user.id != exclude_id and user.email.lower() == wanted
            for user in users
        )

    async def list_users(self) -> ServiceResult:
        """
        Get every user in stored order

        Returns:
            ServiceResult with the full collection and its count
        """
        try:
            users = await self.store.load()
        except StorageError as e:
            return self._storage_failure("List", e)
        except Exception as e:
            return self._unexpected_failure("List", e)

        return ServiceResult(success=True, data=users, count=len(users))

    async def get_user_by_id(self, raw_id: Any) -> ServiceResult:
        """
        Get a single user

        Args:
            raw_id: Id as received from the request path

        Returns:
            ServiceResult with the matching User
        """
        user_id = parse_user_id(raw_id)
        if user_id is None:
            return ServiceResult.failure(ErrorKind.INVALID_ID, INVALID_ID_MESSAGE)

        try:
            users = await self.store.load()
        except StorageError as e:
            return self._storage_failure("Get", e)
        except Exception as e:
            return self._unexpected_failure("Get", e)

        index = self._find_index(users, user_id)
        if index == -1:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, not_found_message(user_id))

        return ServiceResult(success=True, data=users[index], count=1)

    async def create_user(self, payload: Dict[str, Any]) -> ServiceResult:
        """
        Create a new user

        Args:
            payload: Fields supplied by the client (name, email, optional age)

        Returns:
            ServiceResult with the created User
        """
        validation = validate_user(payload, ValidationMode.CREATE)
        if not validation.valid:
            return ServiceResult.failure(
                ErrorKind.VALIDATION_FAILED, VALIDATION_FAILED_MESSAGE, errors=validation.errors
            )

        try:
            users = await self.store.load()

            if self._email_taken(users, payload["email"]):
                logger.info("Rejected user creation: email already registered")
                return ServiceResult.failure(ErrorKind.DUPLICATE_EMAIL, DUPLICATE_EMAIL_MESSAGE)

            now = self._now()
            user = User(
                id=next_id(users),
                name=payload["name"].strip(),
                email=normalize_email(payload["email"]),
                age=payload.get("age"),
                created_at=now,
                updated_at=now,
            )
            users.append(user)
            await self.store.save(users)
        except StorageError as e:
            return self._storage_failure("Create", e)
        except Exception as e:
            return self._unexpected_failure("Create", e)

        logger.info(f"Created user {user.id}")
        return ServiceResult(success=True, data=user, count=1)

    async def update_user(self, raw_id: Any, payload: Dict[str, Any]) -> ServiceResult:
        """
        Apply a partial update to an existing user

        Only keys present in the payload are validated and applied; id and
        createdAt never change, updatedAt is refreshed.

        Args:
            raw_id: Id as received from the request path
            payload: Fields supplied by the client

        Returns:
            ServiceResult with the updated User
        """
        user_id = parse_user_id(raw_id)
        if user_id is None:
            return ServiceResult.failure(ErrorKind.INVALID_ID, INVALID_ID_MESSAGE)

        updates = {key: value for key, value in payload.items() if key in UPDATABLE_FIELDS}
        if not updates:
            return ServiceResult.failure(ErrorKind.NO_FIELDS_PROVIDED, NO_FIELDS_MESSAGE)

        validation = validate_user(updates, ValidationMode.UPDATE)
        if not validation.valid:
            return ServiceResult.failure(
                ErrorKind.VALIDATION_FAILED, VALIDATION_FAILED_MESSAGE, errors=validation.errors
            )

        try:
            users = await self.store.load()

            index = self._find_index(users, user_id)
            if index == -1:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, not_found_message(user_id))

            if "email" in updates and self._email_taken(users, updates["email"], exclude_id=user_id):
                logger.info(f"Rejected update of user {user_id}: email already registered")
                return ServiceResult.failure(ErrorKind.DUPLICATE_EMAIL, DUPLICATE_EMAIL_MESSAGE)

            user = users[index]
            if "name" in updates:
                user.name = updates["name"].strip()
            if "email" in updates:
                user.email = normalize_email(updates["email"])
            if "age" in updates:
                user.age = updates["age"]
            user.updated_at = self._now()

            await self.store.save(users)
        except StorageError as e:
            return self._storage_failure("Update", e)
        except Exception as e:
            return self._unexpected_failure("Update", e)

        logger.info(f"Updated user {user_id} fields: {sorted(updates)}")
        return ServiceResult(success=True, data=user, count=1)

    async def delete_user(self, raw_id: Any) -> ServiceResult:
        """
        Delete a user, keeping the remaining users in order

        Returns:
            ServiceResult with the removed User
        """
        user_id = parse_user_id(raw_id)
        if user_id is None:
            return ServiceResult.failure(ErrorKind.INVALID_ID, INVALID_ID_MESSAGE)

        try:
            users = await self.store.load()

            index = self._find_index(users, user_id)
            if index == -1:
                return ServiceResult.failure(ErrorKind.NOT_FOUND, not_found_message(user_id))

            deleted = users.pop(index)
            await self.store.save(users)
        except StorageError as e:
            return self._storage_failure("Delete", e)
        except Exception as e:
            return self._unexpected_failure("Delete", e)

        logger.info(f"Deleted user {user_id}")
        return ServiceResult(success=True, data=deleted, count=1)


# Global service instance
_users_service: Optional[UsersService] = None

def get_users_service() -> UsersService:
    """Get the global users service instance"""
    global _users_service
    if _users_service is None:
        _users_service = UsersService(get_user_store())
    return _users_service
