"""Admin repository for database operations."""

import asyncio
import logging
from datetime import UTC, datetime

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection

from portfolio_chatbot.models.admin import Admin

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for admin account operations."""

    def __init__(self, collection: Collection) -> None:
        """Initialize admin repository.

        Args:
            collection: MongoDB admins collection
        """
        self.collection = collection

    async def get_by_email(self, email: str) -> Admin | None:
        """Get admin by email.

        Args:
            email: Email to search for

        Returns:
            Admin if found, None otherwise
        """
        admin_doc = await asyncio.to_thread(
            self.collection.find_one, {"email": email.strip().lower()}
        )
        if admin_doc:
            admin_doc["_id"] = str(admin_doc["_id"])
            return Admin.model_validate(admin_doc)
        return None

    async def get_by_id(self, admin_id: str) -> Admin | None:
        """Get admin by ID.

        Args:
            admin_id: Admin ID to search for

        Returns:
            Admin if found, None otherwise
        """
        try:
            object_id = ObjectId(admin_id)
        except (InvalidId, TypeError):
            return None
        admin_doc = await asyncio.to_thread(self.collection.find_one, {"_id": object_id})
        if admin_doc:
            admin_doc["_id"] = str(admin_doc["_id"])
            return Admin.model_validate(admin_doc)
        return None

    async def create(self, admin: Admin) -> Admin:
        """Create new admin.

        Args:
            admin: Admin to create

        Returns:
            Created admin with ID
        """
        admin_dict = admin.model_dump(exclude={"id"}, by_alias=True)
        admin_dict["email"] = admin_dict["email"].strip().lower()

        result = await asyncio.to_thread(self.collection.insert_one, admin_dict)
        admin_dict["_id"] = str(result.inserted_id)

        return Admin.model_validate(admin_dict)

    async def update_last_login(self, admin_id: str) -> None:
        """Update admin's last login timestamp.

        Args:
            admin_id: Admin ID to update
        """
        try:
            object_id = ObjectId(admin_id)
        except (InvalidId, TypeError):
            logger.warning("Cannot record login for malformed admin id '%s'.", admin_id)
            return
        await asyncio.to_thread(
            self.collection.update_one,
            {"_id": object_id},
            {"$set": {"last_login": datetime.now(UTC)}},
        )
