"""
MongoDB connection, document serialization and index setup.

Routes receive the database through the ``get_db`` dependency so that tests
can substitute an in-memory motor-compatible database.
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from bson import ObjectId
from bson.errors import InvalidId
from datetime import datetime
from typing import Any, Dict, Optional
from pathlib import Path
from dotenv import load_dotenv
import os
import logging

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

logger = logging.getLogger(__name__)

# MongoDB connection
mongo_url = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
db_name = os.environ.get('DB_NAME', 'finance_tracker')

client = AsyncIOMotorClient(mongo_url)
db = client[db_name]


def get_db() -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the configured database"""
    return db


def close_client():
    client.close()


def parse_object_id(value: str) -> Optional[ObjectId]:
    """Return an ObjectId for ``value`` or None when it is not a valid id"""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Serialize MongoDB document for JSON response (handles ObjectId, datetime, _id -> id)"""
    if doc is None:
        return None
    result = {}
    for key, value in doc.items():
        if key == "_id":
            key = "id"
        if isinstance(value, ObjectId):
            result[key] = str(value)
        elif isinstance(value, datetime):
            result[key] = value.isoformat()
        elif isinstance(value, dict):
            result[key] = serialize_doc(value)
        elif isinstance(value, list):
            result[key] = [
                serialize_doc(item) if isinstance(item, dict)
                else str(item) if isinstance(item, ObjectId)
                else item
                for item in value
            ]
        else:
            result[key] = value
    return result


async def create_indexes(database: AsyncIOMotorDatabase):
    """Create lookup indexes and the unique project name constraint"""
    try:
        await database.projects.create_index(
            [("project_name", 1)],
            unique=True,
            name="unique_project_name"
        )
        await database.income.create_index(
            [("project_id", 1), ("date", -1)],
            name="income_by_project"
        )
        await database.expenses.create_index(
            [("project_id", 1), ("date", -1)],
            name="expenses_by_project"
        )
        await database.call_booth.create_index(
            [("project_id", 1), ("created_at", -1)],
            name="call_booth_by_project"
        )
        logger.info("Database indexes created")
    except Exception as e:
        # Index may already exist with other options; the app still works without it
        logger.warning(f"Index creation result: {str(e)}")
