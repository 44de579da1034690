"""Memory ingestion routes."""

import schemas
from core.dependencies import get_embedding_queue, get_memory_store
from fastapi import APIRouter, Depends, Response, status
from services import EmbeddingQueue, MemoryStore

router = APIRouter()


@router.post("", response_model=schemas.StoreMemoryResponse, status_code=status.HTTP_201_CREATED)
async def store_memory(
    memory: schemas.StoreMemoryRequest,
    response: Response,
    memory_store: MemoryStore = Depends(get_memory_store),
    embedding_queue: EmbeddingQueue = Depends(get_embedding_queue),
):
    """
    Store a memory and schedule its embedding.

    Returns 201 with the new memory, or 200 with ``deduplicated: true`` when
    the same content was already ingested from the source.
    """
    result = await memory_store.store(memory.to_input())

    if result.deduplicated:
        response.status_code = status.HTTP_200_OK
        return schemas.StoreMemoryResponse(deduplicated=True, memory=None)

    embedding_queue.enqueue(result.data.id)
    return schemas.StoreMemoryResponse(
        deduplicated=False,
        memory=schemas.Memory.model_validate(result.data),
    )
