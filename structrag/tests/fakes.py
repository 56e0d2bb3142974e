"""
Shared fakes for the StructRAG tests.

FakeMemoryDb and ScriptedGenerator stand in for the memory backend and the
LLM, recording every call so tests can assert on what the pipeline did.
"""

import asyncio
from typing import Callable, List, Optional, Tuple, Union

from structrag.common.schemas import Fragment, GenerationOptions


class FakeMemoryDb:
    """Memory backend returning canned matches"""

    def __init__(
        self,
        matches: Optional[List[Tuple[Fragment, float]]] = None,
        listed: Optional[List[Fragment]] = None,
        indexes: Optional[List[str]] = None,
    ):
        self.matches = matches or []
        self.listed = listed or []
        self.indexes = indexes or ["default"]
        self.similar_calls = []
        self.list_calls = []
        self.index_calls = 0

    @property
    def call_count(self) -> int:
        return len(self.similar_calls) + len(self.list_calls) + self.index_calls

    async def get_similar_list(self, index, text, filters=None, min_relevance=0.0, limit=1,
                               with_embeddings=False, cancel_event=None):
        self.similar_calls.append({
            "index": index, "text": text, "filters": filters,
            "min_relevance": min_relevance, "limit": limit,
        })
        for fragment, relevance in self.matches[:limit]:
            yield fragment, relevance

    async def get_list(self, index, filters=None, limit=1, with_embeddings=False, cancel_event=None):
        self.list_calls.append({"index": index, "filters": filters, "limit": limit})
        for fragment in self.listed[:limit]:
            yield fragment

    async def get_indexes(self, cancel_event=None):
        self.index_calls += 1
        return list(self.indexes)


class ScriptedGenerator:
    """
    Text generator replaying scripted responses in call order.

    Each response is streamed in small pieces. ``responses`` may also be a
    callable mapping the prompt to a response.
    """

    def __init__(
        self,
        responses: Union[List[str], Callable[[str], str], None] = None,
        piece_size: int = 4,
        cancel_on_call: Optional[int] = None,
    ):
        self._responses = responses if responses is not None else []
        self.piece_size = piece_size
        self.cancel_on_call = cancel_on_call
        self.prompts: List[str] = []
        self.options: List[GenerationOptions] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def _next_response(self, prompt: str) -> str:
        if callable(self._responses):
            return self._responses(prompt)
        return self._responses[len(self.prompts) - 1]

    async def generate_text(self, prompt: str, options: GenerationOptions, cancel_event=None):
        self.prompts.append(prompt)
        self.options.append(options)
        call_number = len(self.prompts)
        text = self._next_response(prompt)

        pieces = [text[i:i + self.piece_size] for i in range(0, len(text), self.piece_size)]
        for n, piece in enumerate(pieces):
            await asyncio.sleep(0)
            yield piece
            if n == 0 and call_number == self.cancel_on_call and cancel_event is not None:
                cancel_event.set()


def make_fragment(
    document_id: str,
    text: str,
    file_id: str = "",
    file_name: str = "",
    partition_number: int = 0,
    **kwargs,
) -> Fragment:
    return Fragment(
        record_id=kwargs.pop("record_id", f"{document_id}-{partition_number}"),
        document_id=document_id,
        file_id=file_id or f"{document_id}-file",
        file_name=file_name or f"{document_id}.txt",
        partition_text=text,
        partition_number=partition_number,
        **kwargs,
    )
