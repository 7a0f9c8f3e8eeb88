"""
FastAPI application: REST adapter for the data agent.

Usage:
    python run_api.py

Or directly:
    uvicorn adapters.rest.app:app --host 0.0.0.0 --port 8000 --reload
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure src/ is on sys.path when invoked via uvicorn directly
_src_dir = Path(__file__).resolve().parent.parent.parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from infrastructure.config import Settings
from factory import ServiceFactory
from adapters.rest.dependencies import set_factory
from adapters.rest.routers import chat, schema

__version__ = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize ServiceFactory on startup, close its clients on shutdown."""
    config = Settings.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    factory = ServiceFactory(config)
    await factory.initialize()
    set_factory(factory)
    yield
    await factory.shutdown()
    set_factory(None)


app = FastAPI(
    title="MongoDB Natural Language Query API",
    version=__version__,
    description="Conversational data agent over a document database.",
    lifespan=lifespan,
)

# CORS: permissive for development; tighten allowed_origins in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(chat.router)
app.include_router(schema.router)


@app.get("/health", tags=["health"])
async def health():
    return {
        "success": True,
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
