"""
Decomposer

Splits the (instruction-wrapped) question into sub-questions that can each be
answered from the structured knowledge.
"""

import asyncio
import logging
from typing import List, Optional

from ..common.context import RequestContext
from ..common.llm_utils import split_lines
from .base import GenerationStage

logger = logging.getLogger("structrag.pipeline.decomposer")


class Decomposer(GenerationStage):
    """One generation call, one sub-question per non-blank output line"""

    async def decompose(
        self,
        instruction: str,
        knowledge: str,
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[str]:
        prompt = self._render("Decompose", query=instruction, kb_info=knowledge)
        text = await self._complete(prompt, context, cancel_event)

        # Order matters downstream; duplicates are kept as generated
        subqueries = split_lines(text)
        logger.debug("Decomposed into %d sub-questions", len(subqueries))
        return subqueries
