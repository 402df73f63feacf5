"""Retrieval helpers used by the voice agent process on every user turn."""
