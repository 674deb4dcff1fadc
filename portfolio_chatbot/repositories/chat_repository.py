"""Chat session repository."""

import asyncio
import logging
from datetime import UTC, datetime

from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from portfolio_chatbot.models.chat import ChatSession

logger = logging.getLogger(__name__)


class ChatRepository:
    """Repository for chat sessions keyed by the client-supplied session ID."""

    def __init__(self, collection: Collection) -> None:
        """Initialize chat repository.

        Args:
            collection: MongoDB chats collection
        """
        self.collection = collection

    async def get(self, session_id: str) -> ChatSession | None:
        """Get a session by ID.

        Args:
            session_id: Session ID to search for

        Returns:
            ChatSession if found, None otherwise
        """
        session_doc = await asyncio.to_thread(
            self.collection.find_one, {"session_id": session_id}
        )
        if session_doc:
            session_doc.pop("_id", None)
            return ChatSession.model_validate(session_doc)
        return None

    async def create(self, session: ChatSession) -> ChatSession:
        """Insert a new session.

        A concurrent request may create the same session first; the stored
        session is returned in that case.

        Args:
            session: Session to create

        Returns:
            The stored session
        """
        try:
            await asyncio.to_thread(self.collection.insert_one, session.model_dump(mode="python"))
        except DuplicateKeyError:
            logger.debug("Session %s created concurrently; loading it.", session.session_id)
            existing = await self.get(session.session_id)
            if existing is not None:
                return existing
            raise
        return session

    async def save(self, session: ChatSession) -> ChatSession:
        """Persist the full session, overwriting the stored copy.

        Args:
            session: Session to save

        Returns:
            The saved session
        """
        session.updated_at = datetime.now(UTC)
        await asyncio.to_thread(
            self.collection.replace_one,
            {"session_id": session.session_id},
            session.model_dump(mode="python"),
            upsert=True,
        )
        return session

    async def clear(self, session_id: str) -> bool:
        """Remove every message of a session, keeping the session itself.

        Args:
            session_id: Session to clear

        Returns:
            True if the session exists, False otherwise
        """
        result = await asyncio.to_thread(
            self.collection.update_one,
            {"session_id": session_id},
            {"$set": {"messages": [], "updated_at": datetime.now(UTC)}},
        )
        return result.matched_count > 0
