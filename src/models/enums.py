"""
Enum definitions for the User Management API
"""

from enum import Enum

class ValidationMode(str, Enum):
    """
    Validation context for user payloads.

    - CREATE: name and email are mandatory
    - UPDATE: only the fields present in the payload are checked
    """
    CREATE = "create"
    UPDATE = "update"

# Closed set of failure kinds a user service operation can report
class ErrorKind(str, Enum):
    INVALID_ID = "INVALID_ID"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"
    NOT_FOUND = "NOT_FOUND"
    NO_FIELDS_PROVIDED = "NO_FIELDS_PROVIDED"
    DATA_CORRUPTED = "DATA_CORRUPTED"
    PERSISTENCE_FAILURE = "PERSISTENCE_FAILURE"
    INTERNAL = "INTERNAL"
