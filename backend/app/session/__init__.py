"""
Per-room session state.

Records the retrieval sources and last answer the voice agent used in each
room so the UI can show which documents informed a reply.
"""
