"""
domain.exceptions - Custom exception hierarchy for the data agent.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed. Tool-level errors are turned into
failure envelopes at the tool boundary; only TurnBoundExceededError and
MemoryBackendError end a turn.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class UnknownCollectionError(DomainError):
    """Raised when a collection name is not registered."""

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"Invalid collection name: {collection}")


class QueryError(DomainError):
    """Raised when the document store rejects a find or count request."""


class AggregationError(DomainError):
    """Raised when the document store rejects an aggregation pipeline."""


class SchemaError(DomainError):
    """Raised when a collection schema is empty or cannot be reflected."""


class ToolInputError(DomainError):
    """Raised when a tool is unknown or called with invalid arguments."""


class TurnBoundExceededError(DomainError):
    """Raised when the decide/act loop runs past its step limit."""

    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        super().__init__(
            f"Agent stopped after {max_steps} tool step(s) without a final answer"
        )


class MemoryBackendError(DomainError):
    """Raised when the conversation history backend is unreachable."""
