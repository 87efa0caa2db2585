from civicrag.retrieval.context import AssembledContext, SourceRef, assemble_context
from civicrag.retrieval.retriever import ChunkRetriever, RetrievedChunk

__all__ = [
    "AssembledContext",
    "ChunkRetriever",
    "RetrievedChunk",
    "SourceRef",
    "assemble_context",
]
