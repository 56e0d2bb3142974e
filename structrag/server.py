"""
StructRAG MCP Server.

Transport: stdio.

Exposes the search client as MCP tools: ask, search, list_indexes.

Expected MCP Tool Return Format:
{
    "ok": bool,
    "results": Any,          # Present if ok is True
    "error": str            # Present if ok is False
}
"""

import argparse
import importlib
import logging
import os
import signal
from typing import Annotated, Any, Dict, List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .common.config import MemoryConfig, StructRAGConfig, load_config
from .common.context import (
    CUSTOM_RAG_MAX_TOKENS,
    CUSTOM_RAG_NUCLEUS_SAMPLING,
    CUSTOM_RAG_TEMPERATURE,
    RequestContext,
)
from .common.llm_client import LLMClient
from .common.memory_db import MemoryDb, SimpleTextMemoryDb
from .common.prompts import PromptStore
from .common.schemas import MemoryFilter
from .pipeline import StructRAGSearchClient

logger = logging.getLogger("structrag.server")


def _build_filters(tags: Optional[Dict[str, List[str]]]) -> Optional[List[MemoryFilter]]:
    if not tags:
        return None
    memory_filter = MemoryFilter()
    for name, values in tags.items():
        for value in values:
            memory_filter.by_tag(name, value)
    return [memory_filter]


def _build_context(
    max_tokens: Optional[int],
    temperature: Optional[float],
    nucleus_sampling: Optional[float],
) -> RequestContext:
    context = RequestContext()
    if max_tokens is not None:
        context.set_arg(CUSTOM_RAG_MAX_TOKENS, max_tokens)
    if temperature is not None:
        context.set_arg(CUSTOM_RAG_TEMPERATURE, temperature)
    if nucleus_sampling is not None:
        context.set_arg(CUSTOM_RAG_NUCLEUS_SAMPLING, nucleus_sampling)
    return context


class MCPServerApp:
    """
    Main application class for the MCP server.

    Wraps one StructRAGSearchClient; every tool call is an independent request.
    """

    def __init__(
            self,
            search_client: StructRAGSearchClient,
            mcp_server_name: str = "structrag_mcp_server",
            default_index: str = "default",
        ) -> None:
        """
        Initializes the MCPServerApp.
        Args:
            search_client (StructRAGSearchClient): The search client answering tool calls.
            mcp_server_name (str): The name of the MCP server.
            default_index (str): Index used when a tool call omits one.
        """
        self.search_client = search_client
        self._default_index = default_index
        self.mcp = FastMCP(name=mcp_server_name)

        # ---------- MCP Tools: Ask ---------- #
        @self.mcp.tool(
            name="ask",
            description=(
                "Answer a question from memory. Retrieved passages are restructured into a graph, "
                "tables, algorithms, a catalogue or raw chunks, the question is decomposed into "
                "sub-questions, and the final answer cites its source documents."
            ),
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False)
        )
        async def tool_ask(
            question: Annotated[str, Field(description="natural language question")],
            index_name: Annotated[Optional[str], Field(description="index to answer from; the default index if omitted")] = None,
            tags: Annotated[Optional[Dict[str, List[str]]], Field(description="tag filter, e.g. {'user': ['alice']}")] = None,
            min_relevance: Annotated[float, Field(description="minimum relevance of retrieved passages")] = 0.0,
            max_tokens: Annotated[Optional[int], Field(description="override max tokens per generation call")] = None,
            temperature: Annotated[Optional[float], Field(description="override sampling temperature")] = None,
            nucleus_sampling: Annotated[Optional[float], Field(description="override nucleus sampling (top_p)")] = None,
        ) -> Dict[str, Any]:
            """
            MCP tool to answer a question with the StructRAG pipeline.

            Returns:
                Dict[str, Any]: The answer with its citations, or an error.
            """
            try:
                answer = await self.search_client.ask(
                    index=index_name or self._default_index,
                    question=question,
                    filters=_build_filters(tags),
                    min_relevance=min_relevance,
                    context=_build_context(max_tokens, temperature, nucleus_sampling),
                )
            except Exception as e:
                logger.error("ask failed: %s", e)
                return {"ok": False, "error": f"{type(e).__name__}: {e}"}
            return {"ok": True, "results": answer.model_dump(mode="json")}

        # ---------- MCP Tools: Search ---------- #
        @self.mcp.tool(
            name="search",
            description=(
                "Search memory without generating an answer. With a query, passages are ranked by "
                "similarity; with only tags, matching passages are listed. Results are grouped per file."
            ),
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False)
        )
        async def tool_search(
            query: Annotated[str, Field(description="search query; may be empty when tags are given")] = "",
            index_name: Annotated[Optional[str], Field(description="index to search; the default index if omitted")] = None,
            tags: Annotated[Optional[Dict[str, List[str]]], Field(description="tag filter, e.g. {'user': ['alice']}")] = None,
            min_relevance: Annotated[float, Field(description="minimum relevance of returned passages")] = 0.0,
            limit: Annotated[int, Field(description="maximum number of files; 0 uses the configured maximum")] = 0,
        ) -> Dict[str, Any]:
            """
            MCP tool to search memory.

            Returns:
                Dict[str, Any]: The citations found, or an error.
            """
            try:
                result = await self.search_client.search(
                    index=index_name or self._default_index,
                    query=query,
                    filters=_build_filters(tags),
                    min_relevance=min_relevance,
                    limit=limit,
                )
            except Exception as e:
                logger.error("search failed: %s", e)
                return {"ok": False, "error": f"{type(e).__name__}: {e}"}
            return {"ok": True, "results": result.model_dump(mode="json")}

        # ---------- MCP Tools: List Indexes ---------- #
        @self.mcp.tool(
            name="list_indexes",
            description="List the memory indexes available for ask and search.",
            annotations=ToolAnnotations(readOnlyHint=True, destructiveHint=False)
        )
        async def tool_list_indexes() -> Dict[str, Any]:
            """
            MCP tool to list memory indexes.

            Returns:
                Dict[str, Any]: The index names.
            """
            try:
                indexes = await self.search_client.list_indexes()
            except Exception as e:
                logger.error("list_indexes failed: %s", e)
                return {"ok": False, "error": f"{type(e).__name__}: {e}"}
            return {"ok": True, "results": indexes}

    def run(self) -> None:
        """Runs the MCP server using stdio transport."""
        self.mcp.run(transport="stdio")


def load_memory_db(memory_config: MemoryConfig) -> MemoryDb:
    """
    Build the configured memory backend.

    ``backend`` is a "package.module:factory" path called without arguments.
    When empty, a SimpleTextMemoryDb is used, loaded from ``snapshot_path``
    if that file exists.
    """
    if memory_config.backend:
        module_name, _, attr = memory_config.backend.partition(":")
        if not attr:
            raise ValueError(
                f"Invalid memory backend {memory_config.backend!r}, expected 'package.module:factory'"
            )
        factory = getattr(importlib.import_module(module_name), attr)
        logger.info("Using memory backend %s", memory_config.backend)
        return factory()

    snapshot = os.path.expanduser(memory_config.snapshot_path) if memory_config.snapshot_path else ""
    if snapshot and os.path.exists(snapshot):
        return SimpleTextMemoryDb.load(snapshot)

    logger.warning("No memory backend or snapshot configured, starting with an empty memory")
    return SimpleTextMemoryDb()


def build_app(config: StructRAGConfig, server_name: str) -> MCPServerApp:
    """Wire configuration into a ready-to-run server."""
    llm_client = LLMClient.from_config(config.llm)
    if not llm_client.is_available:
        logger.warning("LLM client unavailable: ask will fail until an API key is configured")

    search_client = StructRAGSearchClient(
        memory_db=load_memory_db(config.memory),
        text_generator=llm_client,
        config=config.search,
        prompts=PromptStore.from_directory(config.prompts.templates_dir),
        namespace=config.prompts.namespace,
    )
    return MCPServerApp(
        search_client=search_client,
        mcp_server_name=server_name,
        default_index=config.memory.default_index,
    )


def main() -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(description="Run the StructRAG MCP server (stdio).")
    parser.add_argument(
        "--server-name",
        default=os.getenv("MCP_SERVER_NAME", "structrag_mcp_server"),
        help="Advertised MCP server name.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("STRUCTRAG_LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = build_app(load_config(), args.server_name)

    def _handle_shutdown(signum, frame):
        raise SystemExit(0)
    for sig in (signal.SIGINT, getattr(signal, "SIGTERM", None)):
        if sig is not None:
            signal.signal(sig, _handle_shutdown)

    app.run()


if __name__ == "__main__":
    main()
