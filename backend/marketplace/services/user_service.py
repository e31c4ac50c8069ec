"""Company account service."""

import logging
from typing import Optional

from marketplace.database.mongodb import MongoDB, mongodb
from marketplace.models.user import UserCreate, UserInDB

logger = logging.getLogger(__name__)


class UserService:
    """Account lookups used by checkout and seeding scripts."""

    def __init__(self, database: Optional[MongoDB] = None) -> None:
        self.db = database or mongodb

    async def create_user(self, user: UserCreate) -> UserInDB:
        """Create a new company account."""
        try:
            return await self.db.create_user(user)
        except ValueError as e:
            logger.error("Error creating user: %s", e)
            raise
        except Exception as e:
            logger.error("Unexpected error creating user: %s", e)
            raise

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        """Get account by ID; lookup failures read as a missing account."""
        try:
            return await self.db.get_user(user_id)
        except Exception as e:
            logger.error("Error getting user %s: %s", user_id, e)
            return None


# Global user service instance
user_service = UserService()
