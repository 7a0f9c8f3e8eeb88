"""
Run the data agent REST API.

Usage:
    python run_api.py

Endpoints:
    POST   /chat/query                     Ask a question (body: query, sessionId?, userId?)
    GET    /chat/sessions/{id}/history     Stored messages of a conversation
    DELETE /chat/sessions/{id}             Clear a conversation
    GET    /schema                         Formatted schema of every collection
    GET    /schema/{collection}            Formatted schema and relationships
    GET    /health

Environment variables: see run_cli.py (MONGODB_URI, MEMORY_TYPE, REDIS_URL,
LLM_PROVIDER, API keys, AGENT_MAX_STEPS, SANITIZE_RULES_PATH, LOG_LEVEL, ...).
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "adapters.rest.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
