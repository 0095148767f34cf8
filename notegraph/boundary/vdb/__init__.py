"""
Vector database boundary: schemas, stores, embedding provider and the
VectorIndexAdapter.

Dependencies: pydantic, boto3, tenacity, langchain_core, langchain_google_genai
System role: Dense-vector index adapter
"""

from notegraph.boundary.vdb.embedding_provider import LangChainEmbeddingProvider
from notegraph.boundary.vdb.in_memory_store import InMemoryVectorStore
from notegraph.boundary.vdb.vector_index import EmbeddingProvider, VectorIndexAdapter
from notegraph.boundary.vdb.vector_schemas import VectorEntry, VectorMatch, VectorStore

__all__ = [
    "EmbeddingProvider",
    "InMemoryVectorStore",
    "LangChainEmbeddingProvider",
    "VectorEntry",
    "VectorIndexAdapter",
    "VectorMatch",
    "VectorStore",
]
