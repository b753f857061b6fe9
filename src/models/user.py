"""
User-related Pydantic models
"""

from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """A user record exactly as it is persisted in the data file"""
    # Strict: string ids or boolean ages on disk fail validation
    model_config = ConfigDict(populate_by_name=True, strict=True)

    id: int
    name: str
    email: str
    age: Optional[Union[int, float]] = None
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_json(self) -> dict:
        """Serialize using the persisted (camelCase) field names"""
        return self.model_dump(by_alias=True)


class UserPayload(BaseModel):
    """
    Request body for create and update.

    Fields are deliberately untyped: the user validator decides what is
    acceptable so that every problem is reported in one error list.
    Presence of a key is read from ``model_fields_set``.
    """
    model_config = ConfigDict(extra="ignore")

    name: Any = None
    email: Any = None
    age: Any = None

    def provided_fields(self) -> dict:
        """Only the keys the client actually sent"""
        return {key: getattr(self, key) for key in self.model_fields_set}


class UserDetailResponse(BaseModel):
    success: bool = True
    data: dict


class UserResponse(BaseModel):
    success: bool = True
    message: str
    data: dict


class UserListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[dict]
