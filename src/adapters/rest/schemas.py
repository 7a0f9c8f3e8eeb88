"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


# --- Chat ---

class QueryBody(BaseModel):
    query: str = Field(..., description="Natural-language question about the data.")
    session_id: Optional[str] = Field(None, alias="sessionId")
    user_id: Optional[str] = Field(None, alias="userId")
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    @field_validator("query")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Query is required and must be a non-empty string")
        return v


class QueryOut(BaseModel):
    success: bool
    data: dict[str, Any]


class MessageOut(BaseModel):
    role: str
    content: str
    timestamp: str


class HistoryOut(BaseModel):
    success: bool
    sessionId: str
    messageCount: int = 0
    messages: list[MessageOut] = Field(default_factory=list)
    error: Optional[str] = None


# --- Schema ---

class RelationshipOut(BaseModel):
    field: str
    targetCollection: str
    targetModel: str
    type: str
    required: bool


class SchemaOut(BaseModel):
    collection: str
    fieldCount: int
    fields: dict[str, str]
    relationships: list[RelationshipOut]
