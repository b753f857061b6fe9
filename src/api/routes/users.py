"""
User management API routes
All storage access goes through the users service; this module only maps
service results onto HTTP status codes and response bodies.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends

from models.enums import ErrorKind
from models.user import UserDetailResponse, UserListResponse, UserPayload, UserResponse
from services.base_service import ServiceResult
from services.users_service import UsersService, get_users_service

router = APIRouter()
logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ErrorKind.INVALID_ID: 400,
    ErrorKind.VALIDATION_FAILED: 400,
    ErrorKind.DUPLICATE_EMAIL: 400,
    ErrorKind.NO_FIELDS_PROVIDED: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.DATA_CORRUPTED: 500,
    ErrorKind.PERSISTENCE_FAILURE: 500,
    ErrorKind.INTERNAL: 500,
}

def raise_for_result(result: ServiceResult) -> None:
    """Raise the HTTPException matching a failed service result"""
    if result.success:
        return
    status_code = ERROR_STATUS_CODES.get(result.error_type, 500)
    detail = result.errors if result.errors else result.error
    raise HTTPException(status_code=status_code, detail=detail)

@router.get("", response_model=UserListResponse)
async def list_users(users_service: UsersService = Depends(get_users_service)):
    """Get all users"""
    result = await users_service.list_users()
    raise_for_result(result)

    return UserListResponse(
        count=result.count,
        data=[user.to_json() for user in result.data]
    )

@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(user_id: str, users_service: UsersService = Depends(get_users_service)):
    """Get single user by ID"""
    result = await users_service.get_user_by_id(user_id)
    raise_for_result(result)

    return UserDetailResponse(data=result.data.to_json())

@router.post("", status_code=201, response_model=UserResponse)
async def create_user(
    request: Optional[UserPayload] = None,
    users_service: UsersService = Depends(get_users_service)
):
    """Create a new user"""
    payload = (request or UserPayload()).provided_fields()
    result = await users_service.create_user(payload)
    raise_for_result(result)

    return UserResponse(message="User created successfully", data=result.data.to_json())

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: Optional[UserPayload] = None,
    users_service: UsersService = Depends(get_users_service)
):
    """Update user by ID"""
    payload = (request or UserPayload()).provided_fields()
    result = await users_service.update_user(user_id, payload)
    raise_for_result(result)

    return UserResponse(message="User updated successfully", data=result.data.to_json())

@router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(user_id: str, users_service: UsersService = Depends(get_users_service)):
    """Delete user by ID"""
    result = await users_service.delete_user(user_id)
    raise_for_result(result)

    return UserResponse(message="User deleted successfully", data=result.data.to_json())
