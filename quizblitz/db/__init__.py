"""
Storage backends
FILE: quizblitz/db/__init__.py
"""
import logging

from quizblitz.core.config import Settings
from quizblitz.db.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


async def create_storage(settings: Settings) -> PersistenceGateway:
    """
    Build and initialize the configured storage backend

    Args:
        settings: Application settings (storage_backend decides the store)

    Returns:
        An initialized PersistenceGateway
    """
    if settings.storage_backend == "mongo":
        from quizblitz.db.mongodb import connect_to_mongo, get_database
        from quizblitz.db.mongo_storage import MongoStorage

        await connect_to_mongo(settings.mongodb_url)
        storage = MongoStorage(get_database())
    else:
        from quizblitz.db.memory import MemoryStorage

        storage = MemoryStorage()

    await storage.initialize()
    logger.info(f"💾 Storage ready: {type(storage).__name__}")
    return storage
