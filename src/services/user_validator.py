"""
User validator - field-level rules for create and partial-update payloads
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from models.enums import ValidationMode

NAME_ERROR = "Name is required and must be a non-empty string"
EMAIL_ERROR = "Valid email is required"
AGE_ERROR = "Age must be a number between 0 and 150"

# Permissive local@domain.tld shape, not RFC 5322
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MIN_AGE = 0
MAX_AGE = 150

@dataclass
class ValidationResult:
    """Outcome of validating a user payload"""
    valid: bool
    errors: List[str] = field(default_factory=list)


def is_valid_name(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value) is not None


def is_valid_age(value: Any) -> bool:
    """None means no age; bool is rejected even though it subclasses int"""
    if value is None:
        return True
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return MIN_AGE <= value <= MAX_AGE


def validate_user(candidate: Dict[str, Any], mode: ValidationMode = ValidationMode.CREATE) -> ValidationResult:
    """
    Validate a user payload

    Args:
        candidate: Mapping of the fields supplied by the client. In UPDATE
            mode a key that is absent is simply not checked.
        mode: CREATE requires name and email, UPDATE checks only present keys

    Returns:
        ValidationResult with every violation found (no fail-fast)
    """
    errors = []
    partial = mode == ValidationMode.UPDATE

    if not partial or "name" in candidate:
        if not is_valid_name(candidate.get("name")):
            errors.append(NAME_ERROR)

    if not partial or "email" in candidate:
        if not is_valid_email(candidate.get("email")):
            errors.append(EMAIL_ERROR)

    if "age" in candidate and not is_valid_age(candidate["age"]):
        errors.append(AGE_ERROR)

    return ValidationResult(valid=not errors, errors=errors)
