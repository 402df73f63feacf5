"""
Agent prompt configuration.

Holds the system prompt the voice agent runs with; the UI edits it and the
agent re-reads it every turn.
"""
