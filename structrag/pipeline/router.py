"""
Router

Chooses the knowledge structure best suited to a question, given the titles
of the documents the retrieved fragments come from.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from ..common.context import RequestContext
from ..common.schemas import Fragment
from .base import GenerationStage

logger = logging.getLogger("structrag.pipeline.router")


def document_titles(fragments: Sequence[Fragment]) -> List[str]:
    """File name of the first fragment of each distinct document, in order"""
    seen = set()
    titles = []
    for fragment in fragments:
        if fragment.document_id in seen:
            continue
        seen.add(fragment.document_id)
        titles.append(fragment.file_name)
    return titles


class Router(GenerationStage):
    """Classifies question + fragment pool into a route tag"""

    async def route(
        self,
        question: str,
        fragments: Sequence[Fragment],
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """
        Ask the model for a route.

        Returns:
            The normalized (trimmed, lower-cased) tag. It is not checked
            against the known structure types here; the structurizer does.
        """
        titles = document_titles(fragments)
        logger.debug("Routing over %d documents: %s", len(titles), titles)

        prompt = self._render("Route", query=question, titles=" ".join(titles))
        text = await self._complete(prompt, context, cancel_event)
        return text.strip().lower()
