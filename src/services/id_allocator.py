"""
ID allocation for new user records
"""

from typing import Sequence

from models.user import User


def next_id(users: Sequence[User]) -> int:
    """Next id is one past the highest in use; ids freed by deletion are not reused"""
    if not users:
        return 1
    return max(user.id for user in users) + 1
