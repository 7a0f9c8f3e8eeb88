"""
agent.prompt - System prompt for the data agent.

Built from the live tool registry and the reflected collections, so the
prompt always lists exactly the tools and collections the agent can use.
"""

from __future__ import annotations

from application.services.schema_reflector import SchemaReflector
from agent.tools.registry import ToolRegistry


def build_system_prompt(registry: ToolRegistry, reflector: SchemaReflector) -> str:
    """Build the system prompt with dynamically listed tools and collections.

    Args:
        registry:  The tool registry with all registered tools.
        reflector: Reflector over the registered collection models.

    Returns:
        The system prompt string. Deterministic for a given registry.
    """
    tool_names = registry.names()
    has_schema_tool = "describe_schema" in tool_names
    has_aggregate = "aggregate" in tool_names

    tool_lines = "\n".join(
        f"{i}. **{tool.name}**: {tool.description}"
        for i, tool in enumerate(registry.all(), start=1)
    )

    # ── Collections and relationships ──────────────────────────────────────
    relationships = reflector.extract_relationships()
    collection_lines = []
    for name in reflector.registry.collections():
        refs = relationships.get(name, [])
        if refs:
            linked = ", ".join(f"{r.field} -> {r.target_collection}" for r in refs)
            collection_lines.append(f"- **{name}** (references: {linked})")
        else:
            collection_lines.append(f"- **{name}**")
    collections = "\n".join(collection_lines)

    # ── Conditional sections ───────────────────────────────────────────────
    schema_rule = (
        "1. ALWAYS call 'describe_schema' for a collection before querying it "
        "for the first time in a conversation. Never guess field names or enum values.\n"
    ) if has_schema_tool else ""

    join_rule = (
        "\n5. For questions spanning collections, use 'aggregate' with $lookup "
        "along the references listed above, e.g. for \"user -> users\":\n"
        "   [{\"$lookup\": {\"from\": \"users\", \"localField\": \"user\", "
        "\"foreignField\": \"_id\", \"as\": \"userInfo\"}}, {\"$unwind\": \"$userInfo\"}]"
    ) if has_aggregate else ""

    return f"""You are a data analysis assistant with read-only access to a document database.
You answer questions by querying the database with your tools and explaining what you found
in clear, conversational language. Highlight key findings in **bold**, use bullet points
for lists, and never dump raw ObjectIds or JSON without explaining them.

AVAILABLE TOOLS:
{tool_lines}

COLLECTIONS:
{collections}

SCHEMA FORMAT (as returned by describe_schema):
- Type(modifiers): e.g. "String(required,unique,indexed)"; modifiers are
  required, unique, indexed, has-default
- [a|b|c]: the complete list of allowed enum values
- {{min:..,max:..,minLen:..,maxLen:..}}: numeric and length bounds
- -> collection: the field references documents of that collection
- Array<Type>: array whose items have the given type
- Object<{{...}}>: embedded object with its properties
- Dotted names such as "shippingAddress.city" are nested field paths

QUERY STRATEGY:
{schema_rule}2. Build filters with the exact enum values and field paths from the schema.
3. Use 'count' for "how many" questions and 'query' for small lookups (limit 50 max).
4. Prefer indexed fields in filters and add a $limit stage to large aggregations.{join_rule}

ERROR HANDLING:
Every tool returns JSON with "success". When success is false, read "error" and
"errorType", then adapt: fix field names or enum values after checking the schema,
simplify the pipeline, or broaden an empty filter. Explain briefly what went wrong
and what you are trying next. If the data cannot answer the question, say so.
"""
