"""Tests for Settings and the sanitize-rule loader."""

import json

import pytest

from infrastructure.config import Settings, load_sanitize_rules

ENV_NAMES = (
    "MONGODB_URI", "MONGODB_DATABASE", "MEMORY_TYPE", "REDIS_URL", "SESSION_TTL",
    "LLM_PROVIDER", "LLM_MODEL_ANTHROPIC", "LLM_MODEL_OPENAI", "LLM_MODEL_GROQ",
    "LLM_MODEL_OLLAMA", "LLM_TEMPERATURE", "LLM_MAX_TOKENS", "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY", "GROQ_API_KEY", "OLLAMA_BASE_URL", "AGENT_MAX_STEPS",
    "SANITIZE_RULES", "SANITIZE_RULES_PATH", "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    # A path that does not exist keeps any real .env out of the test
    return tmp_path / "missing.env"


def test_defaults(clean_env):
    settings = Settings.from_env(clean_env)
    assert settings.mongodb_database == "ecommerce"
    assert settings.memory_type == "memory"
    assert settings.session_ttl == 3600
    assert settings.agent_max_steps == 20
    assert settings.sanitize_rules == {}
    assert settings.llm_provider == "anthropic"
    assert settings.active_llm_model == "claude-sonnet-4-5"


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("MEMORY_TYPE", "Redis")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setenv("SESSION_TTL", "120")
    monkeypatch.setenv("LLM_PROVIDER", "groq")
    monkeypatch.setenv("GROQ_API_KEY", "gsk-test")
    monkeypatch.setenv("AGENT_MAX_STEPS", "5")
    monkeypatch.setenv("SANITIZE_RULES", '{"users": {"isActive": true}}')

    settings = Settings.from_env(clean_env)
    assert settings.memory_type == "redis"
    assert settings.session_ttl == 120
    assert settings.active_llm_model == "llama-3.3-70b-versatile"
    assert settings.active_api_key == "gsk-test"
    assert settings.agent_max_steps == 5
    assert settings.sanitize_rules == {"users": {"isActive": True}}


def test_env_file_is_loaded(clean_env, monkeypatch, tmp_path):
    # setenv then delenv so monkeypatch removes whatever load_dotenv writes
    monkeypatch.setenv("MONGODB_DATABASE", "placeholder")
    monkeypatch.delenv("MONGODB_DATABASE")

    env_file = tmp_path / ".env"
    env_file.write_text("MONGODB_DATABASE=shop\n", encoding="utf-8")
    assert Settings.from_env(env_file).mongodb_database == "shop"


def test_redis_requires_url():
    with pytest.raises(ValueError, match="REDIS_URL"):
        Settings(memory_type="redis")


@pytest.mark.parametrize("kwargs", [
    {"memory_type": "sqlite"},
    {"llm_provider": "bard"},
    {"agent_max_steps": 0},
    {"session_ttl": 0},
])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_non_integer_env(clean_env, monkeypatch):
    monkeypatch.setenv("AGENT_MAX_STEPS", "many")
    with pytest.raises(ValueError, match="AGENT_MAX_STEPS"):
        Settings.from_env(clean_env)


# ---------------------------------------------------------------------------
# Sanitize rules
# ---------------------------------------------------------------------------

def test_rules_file_wins_over_inline(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"products": {"tenant": "t1"}}), encoding="utf-8")
    rules = load_sanitize_rules(path=str(path), inline='{"users": {}}')
    assert rules == {"products": {"tenant": "t1"}}


def test_no_rules():
    assert load_sanitize_rules() == {}


@pytest.mark.parametrize("inline", [
    "{not json",
    '["users"]',
    '{"users": true}',
])
def test_bad_rules(inline):
    with pytest.raises(ValueError):
        load_sanitize_rules(inline=inline)
