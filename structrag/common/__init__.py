"""
StructRAG Common Module

Shared infrastructure for the search pipeline: configuration, LLM client,
memory backend contract and prompt templates.
"""

from .config import StructRAGConfig, SearchClientConfig, ConfigurationError, load_config
from .context import RequestContext, resolve_generation_options
from .llm_client import LLMClient, TextGenerator
from .memory_db import MemoryDb, SimpleTextMemoryDb
from .prompts import PromptStore, PromptNotFoundError, render_prompt

__all__ = [
    "StructRAGConfig",
    "SearchClientConfig",
    "ConfigurationError",
    "load_config",
    "RequestContext",
    "resolve_generation_options",
    "LLMClient",
    "TextGenerator",
    "MemoryDb",
    "SimpleTextMemoryDb",
    "PromptStore",
    "PromptNotFoundError",
    "render_prompt",
]
