"""
User Management API Server
CRUD operations for users persisted in a JSON data file
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import ALLOWED_ORIGINS, ENV
from storage.connection import init_storage, close_storage
from api.routes import health, users
from utils.error_handling import setup_error_handling

API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting User Management API ({ENV})")
    await init_storage()
    yield
    await close_storage()

# FastAPI app initialization
app = FastAPI(
    title="User Management API",
    description="CRUD API for users stored in a JSON file",
    version=API_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Setup centralized error handling
setup_error_handling(app)

@app.get("/", tags=["Root"])
async def root():
    """Describe the API and its endpoints"""
    return {
        "message": "Welcome to User Management API",
        "version": API_VERSION,
        "endpoints": {
            "GET /users": "Get all users",
            "GET /users/:id": "Get user by ID",
            "POST /users": "Create a new user",
            "PUT /users/:id": "Update user by ID",
            "DELETE /users/:id": "Delete user by ID"
        }
    }

# Include API routes
app.include_router(health.router, tags=["Health"])
app.include_router(users.router, prefix="/users", tags=["Users"])

# FastAPI app instance is exported for use by uvicorn
# Server startup is handled by main.py at the project root
