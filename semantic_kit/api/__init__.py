"""
API module for Semantic Kit.

This module exports the API components for the Semantic Kit server.
"""

from semantic_kit.api.routes import (  # Models; Route handlers
    ChatRequest,
    CollectionsResponse,
    SearchHit,
    SearchRequest,
    SearchResponse,
    TextItem,
    UpsertRequest,
    UpsertResponse,
    create_chat_completion,
    delete_record,
    get_record,
    get_semantic_kit,
    list_collections,
    search_collection,
    upsert_records,
)

__all__ = [
    # Models
    "ChatRequest",
    "CollectionsResponse",
    "SearchHit",
    "SearchRequest",
    "SearchResponse",
    "TextItem",
    "UpsertRequest",
    "UpsertResponse",
    # Route handlers
    "create_chat_completion",
    "delete_record",
    "get_record",
    "get_semantic_kit",
    "list_collections",
    "search_collection",
    "upsert_records",
]
