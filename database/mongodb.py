from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
import logging

from models.aircraft import AIRCRAFT_INDEXES
from models.engine import ENGINE_INDEXES
from models.oil_consumption import OIL_CONSUMPTION_INDEXES

logger = logging.getLogger(__name__)

COLLECTION_INDEXES = {
    "aircrafts": AIRCRAFT_INDEXES,
    "engines": ENGINE_INDEXES,
    "oil_consumptions": OIL_CONSUMPTION_INDEXES,
}

class Database:
    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, mongo_url: str, db_name: str):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(mongo_url)
            self.db = self.client[db_name]
            # Verify connection
            await self.client.admin.command('ping')
            logger.info(f"Connected to MongoDB database: {db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self):
        """Disconnect from MongoDB"""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    def get_db(self) -> AsyncIOMotorDatabase:
        """Get database instance"""
        if self.db is None:
            raise Exception("Database not connected")
        return self.db

db = Database()

async def get_database() -> AsyncIOMotorDatabase:
    return db.get_db()


async def ensure_indexes(database: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes declared next to each model.

    Re-creating an identical index is a no-op. An existing index with the
    same name but different keys or options raises OperationFailure, which
    stops startup on a misconfigured database.
    """
    for collection_name, index_specs in COLLECTION_INDEXES.items():
        collection = database[collection_name]
        for idx_spec in index_specs:
            await collection.create_index(
                idx_spec["keys"],
                unique=idx_spec.get("unique", False),
                name=idx_spec["name"],
            )
        logger.debug(f"Indexes ensured for {collection_name}")
    logger.info("Database indexes ensured")
