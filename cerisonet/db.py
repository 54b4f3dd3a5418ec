# MongoDB (motor) connection for the posts collection
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from cerisonet.config import settings
from cerisonet.errors import StorageUnavailable

logger = logging.getLogger(__name__)

_client: Optional[AsyncIOMotorClient] = None
_connected = False


async def connect_to_mongo() -> AsyncIOMotorClient:
    """Create the client and check that the server answers."""
    global _client, _connected
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.MONGODB_URL,
            serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        )
    try:
        await _client.admin.command("ping")
    except PyMongoError as e:
        _connected = False
        logger.error("MongoDB unreachable at %s: %s", settings.MONGODB_URL, e)
        raise StorageUnavailable("Erreur de connexion à la base de données MongoDB") from e
    _connected = True
    logger.info("Connected to MongoDB")
    return _client


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency returning the default database of MONGODB_URL.

    Reconnects when the previous attempt failed.
    """
    client = _client if _connected else await connect_to_mongo()
    return client.get_default_database()


def close_mongo_connection() -> None:
    global _client, _connected
    if _client is not None:
        _client.close()
        logger.info("MongoDB connection closed")
    _client = None
    _connected = False
