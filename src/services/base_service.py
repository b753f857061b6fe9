"""
Base service layer for file-backed resources
"""

import logging
from datetime import datetime
from typing import Any, Callable, List, Optional
from dataclasses import dataclass

from models.enums import ErrorKind
from storage.json_store import DataCorruptedError, StorageError, UserStore
from utils.helpers import utc_now

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"

@dataclass
class ServiceResult:
    """Result from service operation"""
    success: bool
    data: Optional[Any] = None
    count: int = 0
    error: Optional[str] = None
    errors: Optional[List[str]] = None
    error_type: Optional[ErrorKind] = None

    @classmethod
    def failure(cls, error_type: ErrorKind, error: str, errors: Optional[List[str]] = None) -> "ServiceResult":
        return cls(success=False, error=error, errors=errors, error_type=error_type)

class BaseService:
    """Base service holding the store and clock shared by every operation"""

    def __init__(self, resource_name: str, store: UserStore, clock: Callable[[], datetime] = utc_now):
        self.resource_name = resource_name
        self.store = store
        self.clock = clock
        logger.info(f"BaseService initialized for resource: {resource_name}")

    def _storage_failure(self, operation: str, exc: StorageError) -> ServiceResult:
        """Translate a storage exception into a failed result"""
        logger.error(f"{operation} failed for {self.resource_name}: {exc}")
        if isinstance(exc, DataCorruptedError):
            return ServiceResult.failure(ErrorKind.DATA_CORRUPTED, str(exc))
        return ServiceResult.failure(ErrorKind.PERSISTENCE_FAILURE, str(exc))

    def _unexpected_failure(self, operation: str, exc: Exception) -> ServiceResult:
        logger.error(f"{operation} failed for {self.resource_name}: {exc}", exc_info=True)
        return ServiceResult.failure(ErrorKind.INTERNAL, INTERNAL_ERROR_MESSAGE)
