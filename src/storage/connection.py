"""
User store lifecycle management
"""

import logging
from typing import Optional

from config.settings import DATA_FILE
from storage.json_store import JsonFileUserStore, StorageError

logger = logging.getLogger(__name__)

# Global user store
user_store: Optional[JsonFileUserStore] = None

async def init_storage():
    """Initialize the user store and make sure the data file is readable"""
    global user_store
    user_store = JsonFileUserStore(DATA_FILE)

    # Bootstraps an empty file if none exists
    try:
        users = await user_store.load()
    except StorageError as e:
        logger.error(f"User store at {DATA_FILE} is not readable: {e}")
        return

    logger.info(f"Storage initialized successfully ({len(users)} users in {DATA_FILE})")


async def close_storage():
    """Release the user store"""
    global user_store
    user_store = None
    logger.info("Storage closed")

def get_user_store() -> JsonFileUserStore:
    """Get the user store instance, creating it lazily outside the app lifespan"""
    global user_store
    if user_store is None:
        user_store = JsonFileUserStore(DATA_FILE)
    return user_store
