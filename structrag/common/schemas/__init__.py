"""
StructRAG Schemas

Memory records, answers with citations, and knowledge structure types.
"""

from .memory import (
    Fragment,
    MemoryFilter,
    Partition,
    Citation,
    MemoryAnswer,
    SearchResult,
    GenerationOptions,
    RELEVANCE_UNAVAILABLE,
)
from .structure import StructureType, StructuredKnowledge, SubKnowledge, InvalidRouteError

__all__ = [
    "Fragment",
    "MemoryFilter",
    "Partition",
    "Citation",
    "MemoryAnswer",
    "SearchResult",
    "GenerationOptions",
    "RELEVANCE_UNAVAILABLE",
    "StructureType",
    "StructuredKnowledge",
    "SubKnowledge",
    "InvalidRouteError",
]
