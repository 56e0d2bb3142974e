"""
Merger

Synthesizes the final answer from the question and the knowledge extracted
for each sub-question.
"""

import asyncio
from typing import Optional, Sequence

from ..common.context import RequestContext
from ..common.schemas import SubKnowledge
from .base import GenerationStage


def format_subknowledges(subknowledges: Sequence[SubKnowledge]) -> str:
    return "\n".join(sk.render() for sk in subknowledges)


class Merger(GenerationStage):
    """Final answer synthesis"""

    async def merge(
        self,
        question: str,
        subknowledges: Sequence[SubKnowledge],
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        prompt = self._render(
            "Merge",
            query=question,
            subknowledges=format_subknowledges(subknowledges),
        )
        return await self._complete(prompt, context, cancel_event)
