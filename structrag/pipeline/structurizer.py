"""
Structurizer

Restructures raw fragments into the representation chosen by the router:
a graph, tables, algorithm descriptions, a catalogue, or the raw chunks.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..common.context import RequestContext
from ..common.schemas import Fragment, StructureType, StructuredKnowledge
from .base import GenerationStage

logger = logging.getLogger("structrag.pipeline.structurizer")

GRAPH_INSTRUCTION = (
    "Based on the given document, construct a graph where entities are the titles of papers "
    "and the relation is 'reference', using the given document title as the head and other "
    "paper titles as tails."
)

# Route -> (instruction builder, construct template). Chunk needs no template.
CONSTRUCTORS: Dict[StructureType, Optional[Tuple[Callable[[str], str], str]]] = {
    StructureType.GRAPH: (lambda question: GRAPH_INSTRUCTION, "ConstructGraph"),
    StructureType.TABLE: (
        lambda question: (
            f"Query is {question}, please extract relevant complete tables from the document "
            "based on the attributes and keywords mentioned in the Query. "
            "Note: retain table titles and source information."
        ),
        "ConstructTable",
    ),
    StructureType.ALGORITHM: (
        lambda question: (
            f"Query is {question}, please extract relevant algorithms from the document "
            "based on the Query."
        ),
        "ConstructAlgorithm",
    ),
    StructureType.CATALOGUE: (
        lambda question: (
            f"Query is {question}, please extract relevant catalogues from the document "
            "based on the Query."
        ),
        "ConstructCatalogue",
    ),
    StructureType.CHUNK: None,
}

if set(CONSTRUCTORS) != set(StructureType):
    raise RuntimeError(f"No constructor for: {set(StructureType) - set(CONSTRUCTORS)}")


def format_chunks(fragments: Sequence[Fragment]) -> str:
    """One ``<source name>: <partition text>`` line per fragment, in retrieval order"""
    return "\n".join(f"{f.file_name}: {f.partition_text}" for f in fragments)


class Structurizer(GenerationStage):
    """Turns the fragment pool into structured knowledge"""

    async def construct(
        self,
        route: str,
        question: str,
        fragments: Sequence[Fragment],
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StructuredKnowledge:
        """
        Build the structured representation for a route.

        Raises:
            InvalidRouteError: if the route is not a known structure type
        """
        structure_type = StructureType.parse(route)
        raw_content = format_chunks(fragments)

        constructor = CONSTRUCTORS[structure_type]
        if constructor is None:
            return StructuredKnowledge(structure_type, question, raw_content)

        build_instruction, template = constructor
        instruction: str = build_instruction(question)
        prompt = self._render(template, instruction=instruction, raw_content=raw_content)
        knowledge = await self._complete(prompt, context, cancel_event)

        logger.debug("Constructed %s knowledge (%d chars)", structure_type.value, len(knowledge))
        return StructuredKnowledge(structure_type, instruction, knowledge)
