# Database connection configuration
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
from config.settings import get_settings
import logging

logger = logging.getLogger(__name__)

class Database:
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

    @classmethod
    async def connect_db(cls) -> Optional[AsyncIOMotorDatabase]:
        """Connect to MongoDB, or return None so callers fall back to memory"""
        settings = get_settings()

        if not settings.mongo_url:
            logger.warning('No MONGO_URL configured. Using in-memory scan storage.')
            return None

        try:
            cls.client = AsyncIOMotorClient(
                settings.mongo_url,
                serverSelectionTimeoutMS=15000,
                retryWrites=True,
                maxPoolSize=10
            )
            await cls.client.admin.command('ping')
            cls.db = cls.client[settings.db_name]

            await cls.db.scans.create_index('id', unique=True)
            await cls.db.scans.create_index('timestamp')

            logger.info(f'Connected to MongoDB: {settings.db_name}')
            return cls.db
        except Exception as e:
            logger.error(f'Failed to connect to MongoDB: {e}')
            logger.warning('Falling back to in-memory scan storage')
            if cls.client:
                cls.client.close()
            cls.client = None
            cls.db = None
            return None

    @classmethod
    async def close_db(cls):
        if cls.client:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info('Closed MongoDB connection')
