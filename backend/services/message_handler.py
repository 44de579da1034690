"""
Chat message adapter.

Turns an incoming chat message into a stored memory, hands new memories to
the embedding queue, and produces the reply the transport should send.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from core.settings import TELEGRAM_SOURCE
from domain.value_objects import IncomingMessage, StoreMemoryInput

from .embedding_queue import EmbeddingQueue
from .memory_store import MemoryStore

logger = logging.getLogger("MessageHandler")

REPLY_STORED = "Stored."
REPLY_ALREADY_STORED = "Already stored."
REPLY_FAILED = "Something went wrong."
REPLY_NOT_AUTHORIZED = "Not authorized."


class MessageHandler:
    """Stores allowed users' messages as memories and queues them for embedding."""

    def __init__(
        self,
        memory_store: MemoryStore,
        embedding_queue: EmbeddingQueue,
        allowed_user_ids: Iterable[int],
        source: str = TELEGRAM_SOURCE,
    ):
        self.memory_store = memory_store
        self.embedding_queue = embedding_queue
        self.allowed_user_ids = frozenset(allowed_user_ids)
        self.source = source

    def is_authorized(self, user_id: int) -> bool:
        return user_id in self.allowed_user_ids

    async def handle(self, message: IncomingMessage) -> Optional[str]:
        """
        Handle one text message.

        Returns:
            Reply text, or None when the message has no sender and is dropped
        """
        if message.user_id is None:
            return None
        if not self.is_authorized(message.user_id):
            logger.info(f"Rejected message from unauthorized user {message.user_id}")
            return REPLY_NOT_AUTHORIZED

        try:
            result = await self.memory_store.store(
                StoreMemoryInput(
                    content=message.text,
                    source=self.source,
                    external_id=str(message.message_id),
                    source_date=datetime.fromtimestamp(message.date, tz=timezone.utc),
                    metadata={"chatId": message.chat_id, "userId": message.user_id},
                )
            )
        except Exception as e:
            logger.error(f"Failed to handle message {message.message_id}: {e}")
            return REPLY_FAILED

        if result.deduplicated:
            return REPLY_ALREADY_STORED

        self.embedding_queue.enqueue(result.data.id)
        return REPLY_STORED
