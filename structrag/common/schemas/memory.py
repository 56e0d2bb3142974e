"""
Memory Schemas

Records retrieved from memory, and the answer/citation shapes built from them.
A Fragment is one partition of a source file, as stored by the memory backend.
"""

from datetime import datetime
from typing import Dict, List, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field


# Relevance attached to partitions found by filtering only (no similarity score).
# Same value as the smallest 32-bit float.
RELEVANCE_UNAVAILABLE = -3.4028234663852886e38


# ============================================================================
# Retrieval
# ============================================================================

class Fragment(BaseModel):
    """A single partition of a source file, immutable once retrieved"""
    model_config = ConfigDict(frozen=True)

    record_id: str = Field(default="", description="Storage id of the partition")
    document_id: str = Field(..., description="Owning document id")
    file_id: str = Field(default="", description="File id inside the document")
    file_name: str = Field(default="", description="Source file name")
    partition_text: str = Field(default="")
    partition_number: int = 0
    section_number: int = 0
    tags: Dict[str, List[str]] = Field(default_factory=dict)
    last_update: Optional[datetime] = None
    content_type: str = Field(default="text/plain")
    url: Optional[str] = Field(default=None, description="Web page the partition was taken from")

    def web_page_url(self, index: str) -> str:
        """Link to the source: the original URL if known, else a download link"""
        if self.url:
            return self.url
        return (
            f"/download?index={quote(index)}"
            f"&documentId={quote(self.document_id)}"
            f"&filename={quote(self.file_name)}"
        )


class MemoryFilter(dict):
    """
    Tag filter passed through to the memory backend.

    Maps a tag name to the values a record must carry, e.g.
    MemoryFilter().by_tag("user", "alice").by_document("doc-1")
    """

    def by_tag(self, name: str, value: str) -> "MemoryFilter":
        self.setdefault(name, []).append(value)
        return self

    def by_document(self, document_id: str) -> "MemoryFilter":
        return self.by_tag("__document_id", document_id)

    def matches(self, fragment: Fragment) -> bool:
        """True when the fragment carries every tag value in this filter"""
        for name, values in self.items():
            if name == "__document_id":
                actual = [fragment.document_id]
            else:
                actual = fragment.tags.get(name, [])
            if not all(v in actual for v in values):
                return False
        return True


# ============================================================================
# Answers
# ============================================================================

class Partition(BaseModel):
    """One cited partition of a source file"""
    text: str
    relevance: float = RELEVANCE_UNAVAILABLE
    partition_number: int = 0
    section_number: int = 0
    last_update: Optional[datetime] = None
    tags: Dict[str, List[str]] = Field(default_factory=dict)


class Citation(BaseModel):
    """Attributable record of the source partitions behind a result"""
    index: str = ""
    document_id: str = ""
    file_id: str = ""
    link: str = ""
    source_content_type: str = ""
    source_name: str = ""
    source_url: Optional[str] = None
    partitions: List[Partition] = Field(default_factory=list)


class MemoryAnswer(BaseModel):
    """Answer to a question, with the sources it was built from"""
    question: str
    result: str = ""
    no_result: bool = False
    no_result_reason: Optional[str] = None
    relevant_sources: List[Citation] = Field(default_factory=list)


class SearchResult(BaseModel):
    """Citations found for a search query, grouped per file"""
    query: str
    results: List[Citation] = Field(default_factory=list)

    @property
    def no_result(self) -> bool:
        return len(self.results) == 0


# ============================================================================
# Generation
# ============================================================================

class GenerationOptions(BaseModel):
    """Sampling options sent with every text generation request"""
    max_tokens: int = 300
    temperature: float = 0.0
    nucleus_sampling: float = 0.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    stop_sequences: List[str] = Field(default_factory=list)
    token_selection_biases: Dict[int, float] = Field(default_factory=dict)
