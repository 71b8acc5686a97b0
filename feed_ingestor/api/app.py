"""
FastAPI application exposing the ingestor's placeholder endpoints.

The app runs in a background thread next to the ingestion run and shares no
state with it.
"""

import logging
import threading

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    app = FastAPI(title="feed-ingestor", docs_url=None, redoc_url=None)

    @app.get("/github", response_class=PlainTextResponse)
    async def github() -> str:
        return "GitHub functionality"

    @app.get("/stackoverflow", response_class=PlainTextResponse)
    async def stackoverflow() -> str:
        return "StackOverflow functionality"

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app


def start_api_server(host: str = "0.0.0.0", port: int = 8080) -> threading.Thread:
    """
    Serve the placeholder app with uvicorn in a daemon thread.

    Args:
        host: Interface to bind
        port: Port to listen on

    Returns:
        The started thread
    """
    server = uvicorn.Server(uvicorn.Config(create_app(), host=host, port=port, log_level="warning"))
    thread = threading.Thread(target=server.run, name="api-server", daemon=True)
    thread.start()
    logger.info(f"Starting combined server on port {port}...")
    return thread
