"""
Extractor

Answers each sub-question against the structured knowledge, using an
extraction prompt specific to the structure type.

Sub-questions are processed one at a time by default. With
``extract_concurrency > 1`` up to that many extraction calls run at once;
results are still returned in sub-question order.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from ..common.context import RequestContext
from ..common.schemas import StructureType, StructuredKnowledge, SubKnowledge
from .base import GenerationStage

logger = logging.getLogger("structrag.pipeline.extractor")

EXTRACT_TEMPLATES: Dict[StructureType, str] = {
    StructureType.GRAPH: "ExtractGraph",
    StructureType.TABLE: "ExtractTable",
    StructureType.ALGORITHM: "ExtractAlgorithm",
    StructureType.CATALOGUE: "ExtractCatalogue",
    StructureType.CHUNK: "ExtractChunk",
}

if set(EXTRACT_TEMPLATES) != set(StructureType):
    raise RuntimeError(f"No extract template for: {set(StructureType) - set(EXTRACT_TEMPLATES)}")


class Extractor(GenerationStage):
    """Per-sub-question knowledge extraction"""

    async def extract(
        self,
        structured: StructuredKnowledge,
        subqueries: Sequence[str],
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[SubKnowledge]:
        """
        Extract knowledge for every sub-question.

        Args:
            structured: Output of the structurizer
            subqueries: Sub-questions, in decomposition order

        Returns:
            One SubKnowledge per sub-question, same order
        """
        concurrency = self._config.extract_concurrency
        if concurrency <= 1 or len(subqueries) <= 1:
            results = []
            for subquery in subqueries:
                results.append(await self._extract_one(structured, subquery, context, cancel_event))
            return results

        semaphore = asyncio.Semaphore(concurrency)

        async def _bounded(subquery: str) -> SubKnowledge:
            async with semaphore:
                return await self._extract_one(structured, subquery, context, cancel_event)

        tasks = [asyncio.ensure_future(_bounded(q)) for q in subqueries]
        try:
            # gather returns results in argument order
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            # Wait for cancelled siblings to unwind before propagating
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _extract_one(
        self,
        structured: StructuredKnowledge,
        subquery: str,
        context: Optional[RequestContext],
        cancel_event: Optional[asyncio.Event],
    ) -> SubKnowledge:
        template = EXTRACT_TEMPLATES[structured.structure_type]
        prompt = self._render(template, subquery=subquery, knowledge=structured.knowledge)
        text = await self._complete(prompt, context, cancel_event)
        logger.debug("Extracted %d chars for sub-question: %s", len(text), subquery)
        return SubKnowledge(subquery, text)
