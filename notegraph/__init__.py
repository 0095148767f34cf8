"""
notegraph: hybrid work-note retrieval core.

Indexes work notes into a lexical (SQLite FTS5) index and a dense vector
index, merges both with Reciprocal Rank Fusion, keeps the vector index
eventually consistent through a retry queue, and serves scoped RAG retrieval.
"""

__version__ = "0.1.0"
