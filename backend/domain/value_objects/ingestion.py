"""
Value objects passed between the ingestion adapter and the memory store.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from infrastructure.database import models


@dataclass
class StoreMemoryInput:
    """
    Input for storing a new memory with optional dedup fields.

    Attributes:
        content: Raw memory text
        source: Origin channel tag (e.g. "telegram")
        category: Optional category label
        tags: Optional ordered list of tags
        metadata: Optional structured metadata (JSON-serializable)
        source_date: Timestamp reported by the source, part of the dedup key
        external_id: Identifier assigned by the source, stored for lookup only
    """

    content: str
    source: str
    category: Optional[str] = None
    tags: Optional[list[str]] = None
    metadata: Optional[Any] = None
    source_date: Optional[datetime] = None
    external_id: Optional[str] = None


@dataclass(frozen=True)
class StoreMemoryResult:
    """
    Result of a store operation.

    Either the created memory (``deduplicated=False``) or no memory with
    ``deduplicated=True`` when the content was already ingested.
    """

    data: Optional["models.Memory"] = field(default=None)
    deduplicated: bool = False

    @classmethod
    def stored(cls, memory: "models.Memory") -> "StoreMemoryResult":
        return cls(data=memory, deduplicated=False)

    @classmethod
    def skipped(cls) -> "StoreMemoryResult":
        return cls(data=None, deduplicated=True)


@dataclass(frozen=True)
class IncomingMessage:
    """
    A text message delivered by the chat transport.

    Attributes:
        text: Message body
        message_id: Transport-assigned message ID
        date: Unix timestamp (seconds) when the message was sent
        chat_id: Chat the message was posted in
        user_id: Sender, or None for updates without a sender (channel posts)
    """

    text: str
    message_id: int
    date: int
    chat_id: int
    user_id: Optional[int] = None
