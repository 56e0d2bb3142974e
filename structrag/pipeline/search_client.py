"""
StructRAG Search Client

Public entry point: answers questions with the structured-knowledge pipeline
and runs plain searches over memory.

ask pipeline:
1. Retrieve the most similar fragments
2. Route: pick a knowledge structure
3. Structurize the fragments
4. Decompose the question into sub-questions
5. Extract knowledge per sub-question
6. Merge into the final answer, cited per document
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from ..common.config import PROMPTS_DIR, SearchClientConfig
from ..common.context import RequestContext
from ..common.llm_client import TextGenerator
from ..common.llm_utils import raise_if_cancelled
from ..common.memory_db import MemoryDb
from ..common.prompts import PromptStore
from ..common.schemas import (
    Fragment,
    MemoryAnswer,
    MemoryFilter,
    SearchResult,
    RELEVANCE_UNAVAILABLE,
)
from .base import PROMPT_NAMESPACE
from .citations import CitationAssembler
from .decomposer import Decomposer
from .extractor import EXTRACT_TEMPLATES, Extractor
from .merger import Merger
from .router import Router
from .structurizer import CONSTRUCTORS, Structurizer

logger = logging.getLogger("structrag.pipeline.search_client")

REQUIRED_PROMPTS = (
    ["Route", "Decompose", "Merge"]
    + [c[1] for c in CONSTRUCTORS.values() if c is not None]
    + list(EXTRACT_TEMPLATES.values())
)

NO_MEMORIES_REASON = "No relevant memories found"


class StructRAGSearchClient:
    """
    Search client answering questions over structured knowledge.

    Holds only construction-time configuration, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        memory_db: MemoryDb,
        text_generator: TextGenerator,
        config: Optional[SearchClientConfig] = None,
        prompts: Optional[PromptStore] = None,
        namespace: str = PROMPT_NAMESPACE,
    ):
        """
        Initialize search client.

        Args:
            memory_db: Memory backend to retrieve fragments from
            text_generator: Streaming text generator for every pipeline stage
            config: Search client configuration (validated here)
            prompts: Prompt templates (default: templates shipped with the package)
            namespace: Template namespace

        Raises:
            ConfigurationError: if the configuration is out of range
            PromptNotFoundError: if a required template is missing
        """
        self._memory_db = memory_db
        self._config = config or SearchClientConfig()
        self._config.validate()

        self._prompts = prompts or PromptStore.from_directory(PROMPTS_DIR)
        self._prompts.validate(namespace, REQUIRED_PROMPTS)

        stage_args = (text_generator, self._prompts, self._config, namespace)
        self.router = Router(*stage_args)
        self.structurizer = Structurizer(*stage_args)
        self.decomposer = Decomposer(*stage_args)
        self.extractor = Extractor(*stage_args)
        self.merger = Merger(*stage_args)

    @property
    def config(self) -> SearchClientConfig:
        return self._config

    async def ask(
        self,
        index: str,
        question: str,
        filters: Optional[List[MemoryFilter]] = None,
        min_relevance: float = 0.0,
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MemoryAnswer:
        """
        Answer a question from the memories stored in ``index``.

        Returns:
            MemoryAnswer; when nothing relevant is found, the configured empty
            answer with ``no_result`` set and no generation performed.
        """
        logger.info("Asking question: %s", question)

        matches = await self._get_similar_records(index, question, filters, min_relevance, cancel_event)
        if logger.isEnabledFor(logging.DEBUG) and matches:
            relevances = [r for _, r in matches]
            logger.debug(
                "Found %d relevant memories, maxRelevance: %s, minRelevance: %s",
                len(matches), max(relevances), min(relevances),
            )

        if not matches:
            return MemoryAnswer(
                question=question,
                result=self._config.empty_answer,
                no_result=True,
                no_result_reason=NO_MEMORIES_REASON,
            )

        fragments = [fragment for fragment, _ in matches]

        # 1. router
        route = await self.router.route(question, fragments, context, cancel_event)
        logger.info("Route: %s", route)

        # 2. structurizer
        structured = await self.structurizer.construct(route, question, fragments, context, cancel_event)
        logger.debug("Instruction: %s\nInfo: %s", structured.instruction, structured.knowledge)

        # 3. utilizer
        # Fixed instructions (graph) do not carry the question
        decompose_query = structured.instruction if question in structured.instruction else question
        subqueries = await self.decomposer.decompose(
            decompose_query, structured.knowledge, context, cancel_event
        )
        logger.debug("Subqueries: %d\n%s", len(subqueries), "\n".join(subqueries))

        subknowledges = await self.extractor.extract(structured, subqueries, context, cancel_event)

        answer = await self.merger.merge(question, subknowledges, context, cancel_event)
        raise_if_cancelled(cancel_event)

        return MemoryAnswer(
            question=question,
            result=answer,
            no_result=False,
            relevant_sources=CitationAssembler.from_records(index, fragments),
        )

    async def search(
        self,
        index: str,
        query: str,
        filters: Optional[List[MemoryFilter]] = None,
        min_relevance: float = 0.0,
        limit: int = -1,
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SearchResult:
        """
        Find memories by similarity to ``query``, or by ``filters`` alone.

        No generation is involved. Results are grouped per file.
        """
        if limit <= 0:
            limit = self._config.max_matches_count

        result = SearchResult(query=query)

        if not (query or "").strip() and not filters:
            logger.warning("No query or filters provided")
            return result

        matches: List[Tuple[Fragment, float]] = []
        if (query or "").strip():
            logger.debug("Fetching relevant memories by similarity, min relevance %s", min_relevance)
            async for fragment, relevance in self._memory_db.get_similar_list(
                index=index,
                text=query,
                filters=filters,
                min_relevance=min_relevance,
                limit=limit,
                with_embeddings=False,
                cancel_event=cancel_event,
            ):
                raise_if_cancelled(cancel_event)
                matches.append((fragment, relevance))
        else:
            logger.debug("Fetching relevant memories by filtering")
            async for fragment in self._memory_db.get_list(
                index=index,
                filters=filters,
                limit=limit,
                with_embeddings=False,
                cancel_event=cancel_event,
            ):
                raise_if_cancelled(cancel_event)
                matches.append((fragment, RELEVANCE_UNAVAILABLE))

        result.results = CitationAssembler.from_matches(index, matches, limit)
        return result

    async def list_indexes(self, cancel_event: Optional[asyncio.Event] = None) -> List[str]:
        return await self._memory_db.get_indexes(cancel_event=cancel_event)

    async def _get_similar_records(
        self,
        index: str,
        question: str,
        filters: Optional[List[MemoryFilter]],
        min_relevance: float,
        cancel_event: Optional[asyncio.Event],
    ) -> List[Tuple[Fragment, float]]:
        matches = []
        async for fragment, relevance in self._memory_db.get_similar_list(
            index=index,
            text=question,
            filters=filters,
            min_relevance=min_relevance,
            limit=self._config.max_matches_count,
            with_embeddings=False,
            cancel_event=cancel_event,
        ):
            raise_if_cancelled(cancel_event)
            matches.append((fragment, relevance))
        return matches
