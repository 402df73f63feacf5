"""
Knowledge Base module for document ingestion and semantic retrieval.

Provides:
- PDF/TXT text extraction and fixed-window chunking
- OpenAI embedding generation
- Qdrant vector storage with an in-memory fallback
- Document registry, deletion and search
"""
