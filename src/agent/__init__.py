"""
agent - Conversational agent orchestration layer.

Contains the data tools, conversation memory, the system prompt and the
orchestrator that runs the decide/act loop.
Depends on domain/ and application/. Never imports from infrastructure/.
"""
