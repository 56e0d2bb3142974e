"""
StructRAG

Retrieval-augmented question answering over structured knowledge.
Retrieved fragments are routed to a knowledge structure, restructured, and
reasoned over sub-question by sub-question before the final answer is merged.

Philosophy:
- The structure fits the question: graphs, tables, algorithms, catalogues or raw chunks
- Every answer cites the documents it was built from
- Memory, embeddings and model inference are external collaborators

Usage:
    from structrag.common import load_config, LLMClient, SimpleTextMemoryDb
    from structrag.common.schemas import Fragment, MemoryFilter
    from structrag.pipeline import StructRAGSearchClient
"""

__version__ = "0.1.0"
