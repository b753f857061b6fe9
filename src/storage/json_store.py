"""
JSON file storage for the user collection

The whole collection lives in one JSON array. Every load reads the file from
disk and every save rewrites it in full; nothing is cached between calls.
"""

import asyncio
import copy
import json
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import List, Protocol, Sequence, Union

from pydantic import ValidationError

from models.user import User

logger = logging.getLogger(__name__)

JSON_INDENT = 2


class StorageError(Exception):
    """Base class for storage failures"""


class DataCorruptedError(StorageError):
    """The data file exists but its contents cannot be understood"""

    def __init__(self, message: str = "Data file is corrupted. Please contact administrator."):
        super().__init__(message)


class PersistenceError(StorageError):
    """The data file could not be read or written"""

    def __init__(self, message: str = "Failed to save data. Please try again."):
        super().__init__(message)


class UserStore(Protocol):
    """Load/save contract for the user collection"""

    async def load(self) -> List[User]:
        ...

    async def save(self, users: Sequence[User]) -> None:
        ...

    async def exists(self) -> bool:
        ...


def serialize_users(users: Sequence[User]) -> str:
    return json.dumps([user.to_json() for user in users], ensure_ascii=False, indent=JSON_INDENT)


def parse_users(raw: Union[str, bytes]) -> List[User]:
    """Parse file contents; anything that is not a list of user objects is corruption"""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DataCorruptedError() from e

    if not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DataCorruptedError() from e

    if not isinstance(data, list):
        raise DataCorruptedError()

    try:
        return [User.model_validate(item) for item in data]
    except ValidationError as e:
        raise DataCorruptedError() from e


class JsonFileUserStore:
    """User store backed by a single JSON file"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def load(self) -> List[User]:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, users: Sequence[User]) -> None:
        await asyncio.to_thread(self._save_sync, list(users))

    async def exists(self) -> bool:
        return await asyncio.to_thread(self.path.exists)

    def _load_sync(self) -> List[User]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Exclusive create so two first requests cannot clobber each other
            try:
                with open(self.path, "x", encoding="utf-8") as f:
                    f.write(json.dumps([], indent=JSON_INDENT))
                logger.info(f"Created empty data file at {self.path}")
                return []
            except FileExistsError:
                pass

            raw = self.path.read_bytes()
        except OSError as e:
            logger.error(f"Error reading data file {self.path}: {e}")
            raise PersistenceError("Failed to read data. Please try again.") from e

        try:
            return parse_users(raw)
        except DataCorruptedError:
            logger.error(f"Unreadable data in file: {self.path}")
            raise

    def _save_sync(self, users: List[User]) -> None:
        payload = serialize_users(users)
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            # mkstemp creates 0600; keep the mode the data file already has
            if self.path.exists():
                os.chmod(tmp_path, stat.S_IMODE(self.path.stat().st_mode))
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing to file {self.path}: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceError() from e


class InMemoryUserStore:
    """Same contract as JsonFileUserStore, kept in process memory"""

    def __init__(self, users: Sequence[User] = ()):
        self._users = [user.model_copy(deep=True) for user in users]
        self.save_count = 0

    async def load(self) -> List[User]:
        return copy.deepcopy(self._users)

    async def save(self, users: Sequence[User]) -> None:
        self._users = copy.deepcopy(list(users))
        self.save_count += 1

    async def exists(self) -> bool:
        return True
