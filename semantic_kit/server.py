"""
HTTP API server for Semantic Kit.

This module provides a FastAPI server for storing and searching texts in
vector store collections and an OpenAI-compatible chat completions endpoint
backed by the kernel.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import (
    CollectionsResponse,
    SearchResponse,
    UpsertResponse,
    create_chat_completion,
    delete_record,
    get_record,
    get_semantic_kit,
    list_collections,
    search_collection,
    upsert_records,
)
from .core import SemanticKit
from .version import __version__

# Set up logging
logger = logging.getLogger(__name__)


def create_app(kit: SemanticKit) -> FastAPI:
    """
    Create a FastAPI app for the Semantic Kit server.

    Args:
        kit: The SemanticKit instance serving the requests

    Returns:
        A FastAPI app
    """
    app = FastAPI(
        title="Semantic Kit API",
        description="Vector store collections, search and chat completions",
        version=__version__,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Override the get_semantic_kit dependency
    app.dependency_overrides[get_semantic_kit] = lambda: kit

    # Register routes
    app.get("/v1/collections", response_model=CollectionsResponse)(list_collections)
    app.post("/v1/collections/{name}/records", response_model=UpsertResponse)(
        upsert_records
    )
    app.get("/v1/collections/{name}/records/{key}")(get_record)
    app.delete("/v1/collections/{name}/records/{key}")(delete_record)
    app.post("/v1/collections/{name}/search", response_model=SearchResponse)(
        search_collection
    )
    app.post("/v1/chat/completions")(create_chat_completion)

    return app
