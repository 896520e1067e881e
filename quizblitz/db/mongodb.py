"""
MongoDB Connection Manager
FILE: quizblitz/db/mongodb.py
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
import logging

from quizblitz.core.config import settings

logger = logging.getLogger(__name__)


class MongoDB:
    client: AsyncIOMotorClient = None


mongodb = MongoDB()


async def connect_to_mongo(url: str = None):
    """Connect to MongoDB and test the connection"""
    url = url or settings.mongodb_url
    try:
        mongodb.client = AsyncIOMotorClient(url, tz_aware=True)
        # Test connection
        await mongodb.client.admin.command('ping')
        logger.info(f"✅ Connected to MongoDB at {url}")
    except Exception as e:
        logger.error(f"❌ Failed to connect to MongoDB: {e}")
        raise


async def close_mongo_connection():
    """Close MongoDB connection"""
    if mongodb.client:
        mongodb.client.close()
        mongodb.client = None
        logger.info("👋 Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get the database instance"""
    return mongodb.client[settings.database_name]


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """
    Create the unique indexes the game engine relies on

    - game_code: no two live sessions share a join code
    - (player_id, question_id): one answer per player per question
    - (user_id, badge_id): a badge is awarded once
    """
    for name in ("users", "lessons", "quizzes", "questions", "sessions",
                 "players", "answers", "badges", "user_badges"):
        await db[name].create_index("id", unique=True)

    await db.users.create_index("email", unique=True)
    await db.sessions.create_index("game_code", unique=True)
    await db.sessions.create_index([("host_id", ASCENDING), ("created_at", DESCENDING)])
    await db.sessions.create_index([("quiz_id", ASCENDING), ("status", ASCENDING)])
    await db.questions.create_index([("quiz_id", ASCENDING), ("order_index", ASCENDING)])
    await db.players.create_index("session_id")
    await db.answers.create_index(
        [("player_id", ASCENDING), ("question_id", ASCENDING)],
        unique=True
    )
    await db.answers.create_index([("session_id", ASCENDING), ("question_id", ASCENDING)])
    await db.user_badges.create_index(
        [("user_id", ASCENDING), ("badge_id", ASCENDING)],
        unique=True
    )
    logger.info("✅ MongoDB indexes ensured")
