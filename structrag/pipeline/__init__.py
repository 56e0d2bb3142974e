"""
StructRAG Pipeline - Structured Knowledge Question Answering

Answers questions by restructuring retrieved fragments before reasoning.

Key Components:
- Router: Picks a knowledge structure (graph, table, algorithm, catalogue, chunk)
- Structurizer: Rebuilds the fragments into that structure
- Decomposer: Splits the question into sub-questions
- Extractor: Extracts knowledge per sub-question
- Merger: Synthesizes the final answer
- CitationAssembler: Groups source fragments into citations
- StructRAGSearchClient: ask / search / list_indexes

Pipeline:
1. Retrieve similar fragments from memory
2. Route → Structurize → Decompose → Extract → Merge
3. Attach citations grouped by document
"""

from .citations import CitationAssembler
from .decomposer import Decomposer
from .extractor import Extractor
from .merger import Merger
from .router import Router
from .search_client import StructRAGSearchClient, REQUIRED_PROMPTS
from .structurizer import Structurizer

__all__ = [
    "CitationAssembler",
    "Decomposer",
    "Extractor",
    "Merger",
    "Router",
    "StructRAGSearchClient",
    "REQUIRED_PROMPTS",
    "Structurizer",
]
