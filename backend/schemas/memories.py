"""Memory ingestion schemas."""

from datetime import datetime
from typing import Any, List, Optional

from domain.value_objects import StoreMemoryInput
from pydantic import BaseModel, Field, field_validator


class StoreMemoryRequest(BaseModel):
    content: str = Field(min_length=1)
    source: str = Field(min_length=1)
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    metadata: Optional[Any] = None
    source_date: Optional[datetime] = None
    external_id: Optional[str] = None

    @field_validator("content", "source")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    def to_input(self) -> StoreMemoryInput:
        return StoreMemoryInput(
            content=self.content,
            source=self.source,
            category=self.category,
            tags=self.tags,
            metadata=self.metadata,
            source_date=self.source_date,
            external_id=self.external_id,
        )


class Memory(BaseModel):
    id: str
    content: str
    source: str
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    metadata: Optional[Any] = Field(default=None, validation_alias="metadata_")
    source_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StoreMemoryResponse(BaseModel):
    deduplicated: bool
    memory: Optional[Memory] = None
