"""
In-memory vector store for local development and tests.

Wraps LangChain's InMemoryVectorStore behind the VectorStore interface.
Vectors arrive already embedded, so records are written in the layout
LangChain's own add path produces; queries go through its cosine
similarity search with an exact-match metadata filter.

Dependencies: langchain_core.vectorstores, numpy (cosine similarity)
System role: Development vector store
"""

import logging

from langchain_core.documents import Document
from langchain_core.embeddings import Embeddings
from langchain_core.vectorstores import InMemoryVectorStore as LangChainInMemoryStore

from notegraph.boundary.vdb.vector_schemas import VectorEntry, VectorMatch, VectorStore

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStore):
    """
    LangChain in-memory store keyed by chunk ID.

    The embedding model only serves LangChain's text search API; this
    adapter always queries by vector.

    Attributes:
        entries: Snapshot of the stored entries by ID
    """

    def __init__(self, embedding: Embeddings) -> None:
        """
        Initialize in-memory store.

        Args:
            embedding: Embedding model handed to the LangChain store
        """
        self._store = LangChainInMemoryStore(embedding=embedding)

    @property
    def entries(self) -> dict[str, VectorEntry]:
        return {
            record_id: VectorEntry(
                id=record_id,
                values=list(record["vector"]),
                metadata=dict(record["metadata"]),
            )
            for record_id, record in self._store.store.items()
        }

    async def upsert(self, entries: list[VectorEntry]) -> None:
        for entry in entries:
            self._store.store[entry.id] = {
                "id": entry.id,
                "vector": list(entry.values),
                "text": "",
                "metadata": dict(entry.metadata),
            }
        logger.debug(f"{__name__}:upsert - Upserted {len(entries)} vectors")

    async def delete_by_ids(self, ids: list[str]) -> None:
        await self._store.adelete(ids)
        logger.debug(f"{__name__}:delete_by_ids - Deleted up to {len(ids)} vectors")

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, str] | None = None,
        return_metadata: bool = True,
    ) -> list[VectorMatch]:
        if not self._store.store:
            return []

        def matches_filter(doc: Document) -> bool:
            return all(doc.metadata.get(key) == value for key, value in filter.items())

        # Score every candidate so equal scores can be ordered by ID.
        scored = self._store.similarity_search_with_score_by_vector(
            vector,
            k=len(self._store.store),
            filter=matches_filter if filter else None,
        )
        scored.sort(key=lambda pair: (-pair[1], pair[0].id))
        return [
            VectorMatch(
                id=doc.id,
                score=float(score),
                metadata=dict(doc.metadata) if return_metadata else {},
            )
            for doc, score in scored[:top_k]
        ]
