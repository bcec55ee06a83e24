"""
API route handlers for Semantic Kit.

This module provides FastAPI route handlers for managing text collections,
searching them, and an OpenAI-compatible chat completions endpoint that can
call the memory search plugin.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from fastapi import Depends, HTTPException
from pydantic import BaseModel

from ..core import SemanticKit
from ..exceptions import SemanticKitError
from ..kernel.chat_history import ChatHistory
from ..records import EMBEDDING

# Set up logging
logger = logging.getLogger(__name__)


class TextItem(BaseModel):
    id: str
    text: str
    tags: List[str] = []


class UpsertRequest(BaseModel):
    records: List[TextItem]


class UpsertResponse(BaseModel):
    keys: List[str]


class SearchRequest(BaseModel):
    query: str
    limit: int = 3
    offset: int = 0
    tags: List[str] = []
    include_total_count: bool = False


class SearchHit(BaseModel):
    record: Dict[str, Any]
    score: Optional[float] = None


class SearchResponse(BaseModel):
    results: List[SearchHit]
    total_count: Optional[int] = None


class CollectionsResponse(BaseModel):
    collections: List[str]


class ChatRequest(BaseModel):
    messages: List[Dict[str, Any]]
    model: Optional[str] = None
    collection: Optional[str] = None


def get_semantic_kit() -> SemanticKit:
    """Get the SemanticKit instance."""
    raise NotImplementedError("Should be implemented in the main app")


def _without_vectors(record: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in record.items() if k != EMBEDDING}


async def list_collections(
    kit: SemanticKit = Depends(get_semantic_kit),
) -> CollectionsResponse:
    return CollectionsResponse(collections=kit.list_collections())


async def upsert_records(
    name: str,
    request: UpsertRequest,
    kit: SemanticKit = Depends(get_semantic_kit),
) -> UpsertResponse:
    """
    Embed and store texts in a collection.

    Args:
        name: Collection name
        request: The texts to store
        kit: The SemanticKit instance

    Returns:
        The stored keys
    """
    try:
        keys = kit.upsert_texts([r.model_dump() for r in request.records], name)
    except (SemanticKitError, ValueError) as e:
        logger.exception("Error upserting records")
        raise HTTPException(status_code=400, detail=str(e))
    return UpsertResponse(keys=keys)


async def get_record(
    name: str,
    key: str,
    kit: SemanticKit = Depends(get_semantic_kit),
) -> Dict[str, Any]:
    try:
        record = kit.get_text(key, name)
    except (SemanticKitError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    if record is None:
        raise HTTPException(status_code=404, detail=f"Record {key} not found")
    return _without_vectors(record)


async def delete_record(
    name: str,
    key: str,
    kit: SemanticKit = Depends(get_semantic_kit),
) -> Dict[str, str]:
    try:
        kit.delete_text(key, name)
    except (SemanticKitError, ValueError) as e:
        logger.exception("Error deleting record")
        raise HTTPException(status_code=400, detail=str(e))
    return {"deleted": key}


async def search_collection(
    name: str,
    request: SearchRequest,
    kit: SemanticKit = Depends(get_semantic_kit),
) -> SearchResponse:
    """
    Search a collection for texts similar to a query.

    Args:
        name: Collection name
        request: Query, paging and tag filter
        kit: The SemanticKit instance

    Returns:
        The scored records, without their vectors
    """
    try:
        results = kit.search(
            request.query,
            collection_name=name,
            limit=request.limit,
            offset=request.offset,
            tags=request.tags,
            include_total_count=request.include_total_count,
        )
    except (SemanticKitError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return SearchResponse(
        results=[
            SearchHit(record=_without_vectors(r.record), score=r.score) for r in results
        ],
        total_count=results.total_count,
    )


async def create_chat_completion(
    request: ChatRequest,
    kit: SemanticKit = Depends(get_semantic_kit),
) -> Dict[str, Any]:
    """
    Create a chat completion that may call the memory search plugin.

    Args:
        request: Messages, model and the collection to search
        kit: The SemanticKit instance

    Returns:
        The chat completion response in the OpenAI shape
    """
    try:
        chat_history = ChatHistory(messages=request.messages)
        message = kit.chat(
            chat_history,
            kernel=kit.create_kernel(request.collection),
            model=request.model,
        )
    except Exception as e:
        logger.exception("Error creating chat completion")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "id": f"chatcmpl-{uuid.uuid4().hex}",
        "object": "chat.completion",
        "created": int(time.time()),
        "model": request.model or kit.chat_service.model,
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
    }
