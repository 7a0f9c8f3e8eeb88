"""
Run the data agent CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    ask        One-shot question (continues the current conversation)
    chat       Interactive chat session
    schema     Show the formatted schema of one or all collections
    history    Show the stored messages of a conversation
    clear      Delete a conversation's history
    new        Start a fresh conversation

Examples:
    python run_cli.py ask "Which 5 products sold the most?"
    python run_cli.py chat --session demo
    python run_cli.py schema orders

Environment variables (all optional):
    MONGODB_URI           MongoDB connection string (default: mongodb://localhost:27017)
    MONGODB_DATABASE      Database name (default: ecommerce)
    MEMORY_TYPE           "memory" or "redis" (default: memory)
    REDIS_URL             Required when MEMORY_TYPE=redis
    SESSION_TTL           Conversation lifetime in seconds (default: 3600)
    LLM_PROVIDER          "anthropic", "openai", "groq", or "ollama" (default: anthropic)
    LLM_MODEL_ANTHROPIC   Model name when LLM_PROVIDER=anthropic
    LLM_MODEL_OPENAI      Model name when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ        Model name when LLM_PROVIDER=groq (default: llama-3.3-70b-versatile)
    LLM_MODEL_OLLAMA      Model name when LLM_PROVIDER=ollama (default: llama3.2)
    ANTHROPIC_API_KEY     Required when LLM_PROVIDER=anthropic
    OPENAI_API_KEY        Required when LLM_PROVIDER=openai
    GROQ_API_KEY          Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL       Ollama server URL (default: http://localhost:11434/)
    AGENT_MAX_STEPS       Tool steps allowed per turn (default: 20)
    SANITIZE_RULES_PATH   JSON file: collection → $match filter for joined collections
    SANITIZE_RULES        Same table as inline JSON
    LOG_LEVEL             Logging level (default: INFO)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
