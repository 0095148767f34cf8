"""
Vector index adapter.

Combines an embedding provider and a vector store into the operations the
sync coordinator, hybrid search and RAG use: batch upsert of chunks,
stale-chunk cleanup after a successful upsert, and filtered search.

Dependencies: notegraph.boundary.vdb, notegraph.core
System role: Single entry point to the dense-vector index
"""

import logging
from typing import Protocol

from notegraph.boundary.vdb.vector_schemas import VectorEntry, VectorMatch, VectorStore
from notegraph.core.exceptions import EmbeddingError
from notegraph.core.metadata_codec import DEFAULT_MAX_BYTES, encode_metadata
from notegraph.models.chunk import TextChunk

logger = logging.getLogger(__name__)

DEFAULT_STALE_SCAN_LIMIT = 500
DELETE_BATCH_SIZE = 100


class EmbeddingProvider(Protocol):
    """Text-to-vector collaborator."""

    async def embed(self, text: str) -> list[float]: ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]: ...


class VectorIndexAdapter:
    """
    Upsert/delete/query wrapper around a vector store.

    Attributes:
        store: Underlying vector store
        dimension: Index dimension (size of the scan vector)
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        store: VectorStore,
        dimension: int,
        metadata_max_bytes: int = DEFAULT_MAX_BYTES,
        stale_scan_limit: int = DEFAULT_STALE_SCAN_LIMIT,
    ) -> None:
        """
        Initialize adapter.

        Args:
            embedding_provider: Provider used for chunk and query embeddings
            store: Vector store backend
            dimension: Vector dimension of the index
            metadata_max_bytes: Byte budget per string metadata field
            stale_scan_limit: Max candidates fetched when scanning for stale chunks
        """
        self.embedding_provider = embedding_provider
        self.store = store
        self.dimension = dimension
        self.metadata_max_bytes = metadata_max_bytes
        self.stale_scan_limit = stale_scan_limit

    async def upsert_chunks(self, chunks: list[TextChunk]) -> None:
        """
        Embed all chunk texts in one provider call and upsert them.

        No partial success: if embedding fails nothing is written.

        Args:
            chunks: Chunks to index (may span several work notes)

        Raises:
            EmbeddingError: Embedding failed or returned the wrong number of vectors
            VectorStoreError: Store rejected the upsert
        """
        if not chunks:
            return

        vectors = await self.embedding_provider.embed_batch([c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingError(
                "Embedding provider returned a mismatched number of vectors",
                details={"expected": len(chunks), "received": len(vectors)},
            )

        entries = [
            VectorEntry(
                id=chunk.id,
                values=vector,
                metadata=encode_metadata(chunk.metadata, self.metadata_max_bytes),
            )
            for chunk, vector in zip(chunks, vectors)
        ]
        await self.store.upsert(entries)
        logger.info(f"{__name__}:upsert_chunks - Upserted {len(entries)} chunks")

    async def delete_stale_chunks(self, work_id: str, keep_ids: set[str]) -> list[str]:
        """
        Delete a note's chunks whose IDs are not in ``keep_ids``.

        Finds the note's chunks with a query filtered by work_id. Backends cap
        the result size (S3 Vectors returns at most 100 per query), so the
        scan repeats until a pass turns up no new stale IDs. Each pass
        deletes what it found, so later passes see chunks that were pushed
        out of earlier windows. A note whose current chunks alone fill a
        whole window can still hide stale chunks; that case is logged.
        Call only after the new chunk set was upserted.

        Args:
            work_id: Work note ID
            keep_ids: Chunk IDs of the current version

        Returns:
            list[str]: Deleted chunk IDs

        Raises:
            VectorStoreError: Query or delete failed
        """
        deleted: list[str] = []
        seen: set[str] = set()
        while True:
            matches = await self.store.query(
                self._scan_vector(),
                top_k=self.stale_scan_limit,
                filter={"work_id": work_id},
                return_metadata=False,
            )
            stale_ids = [m.id for m in matches if m.id not in keep_ids and m.id not in seen]
            if not stale_ids:
                if len(matches) < len(keep_ids):
                    logger.warning(
                        f"{__name__}:delete_stale_chunks - Current chunks overflow the scan window, "
                        "stale chunks may remain",
                        extra={"work_id": work_id, "window": len(matches)},
                    )
                break

            for start in range(0, len(stale_ids), DELETE_BATCH_SIZE):
                await self.store.delete_by_ids(stale_ids[start:start + DELETE_BATCH_SIZE])
            seen.update(stale_ids)
            deleted.extend(stale_ids)

        if deleted:
            logger.info(
                f"{__name__}:delete_stale_chunks - Deleted {len(deleted)} stale chunks",
                extra={"work_id": work_id},
            )
        return deleted

    async def delete_work_note_chunks(self, work_id: str) -> list[str]:
        """Delete every chunk of a work note."""
        return await self.delete_stale_chunks(work_id, set())

    async def search(
        self,
        query: str,
        top_k: int,
        filter: dict[str, str] | None = None,
    ) -> list[VectorMatch]:
        """
        Embed the query and run a filtered top-k search.

        Args:
            query: Query text
            top_k: Maximum matches
            filter: Metadata equality filter

        Returns:
            list[VectorMatch]: Chunk-level matches, best first
        """
        vector = await self.embedding_provider.embed(query)
        return await self.store.query(vector, top_k=top_k, filter=filter, return_metadata=True)

    def _scan_vector(self) -> list[float]:
        # Cosine indexes reject zero-norm query vectors.
        return [1.0] + [0.0] * (self.dimension - 1)
