"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment (and an
optional .env file) or passed explicitly in tests.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

MEMORY_TYPES = ("memory", "redis")
LLM_PROVIDERS = ("anthropic", "openai", "groq", "ollama")


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the data agent.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """

    # ── Document store ──────────────────────────────────────────
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "ecommerce"

    # ── Conversation memory ─────────────────────────────────────
    # "memory" keeps history in-process, "redis" persists it with a TTL
    memory_type: str = "memory"
    redis_url: str = ""
    session_ttl: int = 3600

    # ── Centralized LLM Provider ────────────────────────────────
    # Allowed: "anthropic", "openai", "groq", "ollama"
    llm_provider: str = "anthropic"

    # Model names, only the one matching llm_provider is used.
    llm_model_anthropic: str = "claude-sonnet-4-5"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_model_ollama: str = "llama3.2"
    llm_temperature: float = 0.0
    llm_max_tokens: int = 4096

    # Connection details
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    groq_api_key: str = ""
    ollama_base_url: str = "http://localhost:11434/"

    # ── Agent ───────────────────────────────────────────────────
    agent_max_steps: int = 20

    # Access rules for joined collections: collection → $match filter
    sanitize_rules: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.memory_type not in MEMORY_TYPES:
            raise ValueError(
                f"Unknown MEMORY_TYPE '{self.memory_type}'. Allowed: {', '.join(MEMORY_TYPES)}"
            )
        if self.memory_type == "redis" and not self.redis_url:
            raise ValueError("MEMORY_TYPE=redis requires REDIS_URL")
        if self.llm_provider not in LLM_PROVIDERS:
            raise ValueError(
                f"Unknown LLM_PROVIDER '{self.llm_provider}'. Allowed: {', '.join(LLM_PROVIDERS)}"
            )
        if self.agent_max_steps < 1:
            raise ValueError(f"AGENT_MAX_STEPS must be positive, got {self.agent_max_steps}")
        if self.session_ttl < 1:
            raise ValueError(f"SESSION_TTL must be positive, got {self.session_ttl}")

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        elif self.llm_provider == "ollama":
            return self.llm_model_ollama
        return self.llm_model_anthropic

    @property
    def active_api_key(self) -> str:
        return {
            "anthropic": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "groq": self.groq_api_key,
        }.get(self.llm_provider, "")

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> Settings:
        """Build Settings from the environment, loading .env first."""
        from dotenv import load_dotenv
        load_dotenv(env_file)

        return cls(
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            mongodb_database=os.getenv("MONGODB_DATABASE", "ecommerce"),

            memory_type=os.getenv("MEMORY_TYPE", "memory").strip().lower(),
            redis_url=os.getenv("REDIS_URL", ""),
            session_ttl=_int_env("SESSION_TTL", 3600),

            # Centralized LLM provider
            llm_provider=os.getenv("LLM_PROVIDER", "anthropic").strip().lower(),
            llm_model_anthropic=os.getenv("LLM_MODEL_ANTHROPIC", "claude-sonnet-4-5"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0")),
            llm_max_tokens=_int_env("LLM_MAX_TOKENS", 4096),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),

            agent_max_steps=_int_env("AGENT_MAX_STEPS", 20),
            sanitize_rules=load_sanitize_rules(
                path=os.getenv("SANITIZE_RULES_PATH") or None,
                inline=os.getenv("SANITIZE_RULES") or None,
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def load_sanitize_rules(
    path: Optional[str] = None, inline: Optional[str] = None,
) -> dict[str, dict[str, Any]]:
    """Load the collection → filter table from a JSON file or inline JSON.

    The file wins when both are given. An absent table means no rules.
    """
    if path:
        raw = Path(path).read_text(encoding="utf-8")
        source = path
    elif inline:
        raw = inline
        source = "SANITIZE_RULES"
    else:
        return {}

    try:
        rules = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid sanitize rules JSON in {source}: {exc}") from exc

    if not isinstance(rules, dict) or not all(
        isinstance(k, str) and isinstance(v, dict) for k, v in rules.items()
    ):
        raise ValueError(
            f"Sanitize rules in {source} must be an object mapping collection names to filter objects"
        )
    return rules


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None
