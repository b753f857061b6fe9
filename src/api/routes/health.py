"""
Health check API route
"""

from fastapi import APIRouter, HTTPException, Depends

from services.users_service import UsersService, get_users_service
from utils.helpers import to_iso_timestamp, utc_now

router = APIRouter()

@router.get("/health")
async def health_check(users_service: UsersService = Depends(get_users_service)):
    """
    Health check - healthy only while the user data file can be loaded

    A corrupted or unreadable data file makes every user route fail, so it
    is reported here as 503.
    """
    # Checked before loading, which creates a missing file
    file_present = await users_service.store.exists()

    result = await users_service.list_users()
    if not result.success:
        raise HTTPException(status_code=503, detail=f"Health check failed: {result.error}")

    return {
        "status": "healthy",
        "timestamp": to_iso_timestamp(utc_now()),
        "storage": {
            "status": "readable",
            "data_file": "present" if file_present else "created",
            "users": result.count
        }
    }
