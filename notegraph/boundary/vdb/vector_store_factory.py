"""
Vector store and embedding factories.

Selects between the in-memory store (dev) and S3 Vectors (prod) based on
VECTOR_STORE_STORE_TYPE, and builds the default embedding model.

Dependencies: langchain_core, notegraph.boundary.vdb, notegraph.configs
System role: Vector store instantiation and selection
"""

import logging

from langchain_core.embeddings import Embeddings

from notegraph.boundary.vdb.embeddings_wrapper import FixedDimensionEmbeddings
from notegraph.boundary.vdb.in_memory_store import InMemoryVectorStore
from notegraph.boundary.vdb.s3_vectors_store import S3VectorsStore
from notegraph.boundary.vdb.vector_schemas import VectorStore
from notegraph.configs import Settings, get_settings

logger = logging.getLogger(__name__)


def get_vector_store(
    settings: Settings | None = None,
    embeddings: Embeddings | None = None,
) -> VectorStore:
    """
    Factory function to get vector store based on configuration.

    Args:
        settings: Application settings (defaults to get_settings())
        embeddings: Embedding model for the in-memory store (defaults to get_embeddings())

    Returns:
        InMemoryVectorStore or S3VectorsStore: Configured vector store instance

    Raises:
        ValueError: If store_type is invalid
    """
    settings = settings or get_settings()
    config = settings.vector_store
    store_type = config.store_type.lower()

    if store_type == "memory":
        logger.info(f"{__name__}:get_vector_store - Creating in-memory vector store (local dev mode)")
        return InMemoryVectorStore(embeddings or get_embeddings(settings))

    if store_type == "s3":
        logger.info(f"{__name__}:get_vector_store - Creating S3 Vectors store (production mode)")
        return S3VectorsStore(
            vectors_bucket=config.vectors_bucket,
            index_name=config.index_name,
            region=config.aws_region,
        )

    raise ValueError(
        f"Invalid VECTOR_STORE_STORE_TYPE: {store_type}. "
        f"Must be 'memory' (dev) or 's3' (production)."
    )


def get_embeddings(settings: Settings | None = None) -> FixedDimensionEmbeddings:
    """
    Build the default embedding model.

    Returns:
        FixedDimensionEmbeddings: Google embeddings pinned to the index dimension
    """
    settings = settings or get_settings()
    return FixedDimensionEmbeddings(
        model=settings.embedding.model,
        output_dimensionality=settings.embedding.dimension,
    )
