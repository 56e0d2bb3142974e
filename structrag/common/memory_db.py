"""
Memory DB

Contract for the memory backend the search client reads from, and a simple
in-memory implementation for development and tests.

SimpleTextMemoryDb does not use embeddings: relevance is the share of query
words found in a partition. Records can be persisted to a JSON snapshot.
"""

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Protocol, Tuple, Union

from .llm_utils import raise_if_cancelled
from .schemas import Fragment, MemoryFilter

logger = logging.getLogger("structrag.common.memory_db")

_WORD_RE = re.compile(r"\w+")


class MemoryDb(Protocol):
    """Read side of a memory backend."""

    def get_similar_list(
        self,
        index: str,
        text: str,
        filters: Optional[List[MemoryFilter]] = None,
        min_relevance: float = 0.0,
        limit: int = 1,
        with_embeddings: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Tuple[Fragment, float]]:
        """Fragments similar to ``text``, most relevant first."""
        ...

    def get_list(
        self,
        index: str,
        filters: Optional[List[MemoryFilter]] = None,
        limit: int = 1,
        with_embeddings: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Fragment]:
        """Fragments matching ``filters``, without relevance."""
        ...

    async def get_indexes(self, cancel_event: Optional[asyncio.Event] = None) -> List[str]:
        ...


def _words(text: str) -> List[str]:
    return [w.lower() for w in _WORD_RE.findall(text or "")]


def _matches_any(fragment: Fragment, filters: Optional[List[MemoryFilter]]) -> bool:
    """Filters are OR-ed; tag values inside one filter are AND-ed"""
    if not filters:
        return True
    return any(f.matches(fragment) for f in filters)


class SimpleTextMemoryDb:
    """
    Volatile memory backend keyed by index name.

    Features:
    - Keyword-overlap relevance (no embeddings)
    - Tag filtering
    - JSON snapshot load/save
    """

    def __init__(self):
        self._indexes: Dict[str, Dict[str, Fragment]] = {}

    def upsert(self, index: str, fragment: Fragment) -> str:
        """Insert or replace a fragment; returns its record id"""
        record_id = fragment.record_id or (
            f"{fragment.document_id}/{fragment.file_id}/{fragment.partition_number}"
        )
        if fragment.record_id != record_id:
            fragment = fragment.model_copy(update={"record_id": record_id})
        self._indexes.setdefault(index, {})[record_id] = fragment
        return record_id

    def delete_index(self, index: str) -> None:
        self._indexes.pop(index, None)

    async def get_indexes(self, cancel_event: Optional[asyncio.Event] = None) -> List[str]:
        raise_if_cancelled(cancel_event)
        return list(self._indexes.keys())

    async def get_similar_list(
        self,
        index: str,
        text: str,
        filters: Optional[List[MemoryFilter]] = None,
        min_relevance: float = 0.0,
        limit: int = 1,
        with_embeddings: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Tuple[Fragment, float]]:
        raise_if_cancelled(cancel_event)
        query_words = set(_words(text))
        if not query_words:
            return

        scored = []
        for fragment in self._indexes.get(index, {}).values():
            if not _matches_any(fragment, filters):
                continue
            fragment_words = set(_words(fragment.partition_text))
            relevance = len(query_words & fragment_words) / len(query_words)
            if relevance > 0 and relevance >= min_relevance:
                scored.append((fragment, relevance))

        # Stable sort keeps insertion order among equal scores
        scored.sort(key=lambda item: item[1], reverse=True)
        if limit > 0:
            scored = scored[:limit]
        for fragment, relevance in scored:
            raise_if_cancelled(cancel_event)
            yield fragment, relevance

    async def get_list(
        self,
        index: str,
        filters: Optional[List[MemoryFilter]] = None,
        limit: int = 1,
        with_embeddings: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Fragment]:
        raise_if_cancelled(cancel_event)
        count = 0
        for fragment in self._indexes.get(index, {}).values():
            if not _matches_any(fragment, filters):
                continue
            if limit > 0 and count >= limit:
                break
            raise_if_cancelled(cancel_event)
            count += 1
            yield fragment

    # ---------- Snapshot ---------- #

    def save(self, path: Union[str, Path]) -> None:
        """Write all indexes to a JSON snapshot"""
        data = {
            index: [f.model_dump(mode="json") for f in records.values()]
            for index, records in self._indexes.items()
        }
        Path(path).expanduser().write_text(json.dumps(data, indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SimpleTextMemoryDb":
        """Build a store from a JSON snapshot written by save()"""
        db = cls()
        snapshot = Path(path).expanduser()
        data = json.loads(snapshot.read_text(encoding="utf-8"))
        for index, records in data.items():
            for record in records:
                db.upsert(index, Fragment.model_validate(record))
        logger.info("Loaded %d indexes from %s", len(db._indexes), snapshot)
        return db
