"""
Base Stage

Common plumbing for pipeline stages that call the text generator:
template lookup, option resolution and stream collection.
"""

import asyncio
from typing import Optional

from ..common.config import SearchClientConfig
from ..common.context import RequestContext, resolve_generation_options
from ..common.llm_client import TextGenerator
from ..common.llm_utils import collect_text
from ..common.prompts import PromptStore, render_prompt

PROMPT_NAMESPACE = "StructRAG"


class GenerationStage:
    """
    Base class for stages backed by one or more generation calls.

    Each call renders a template, resolves generation options for the
    request and waits for the full streamed response before returning.
    """

    def __init__(
        self,
        text_generator: TextGenerator,
        prompts: PromptStore,
        config: SearchClientConfig,
        namespace: str = PROMPT_NAMESPACE,
    ):
        """
        Initialize stage.

        Args:
            text_generator: Streaming text generator
            prompts: Prompt templates
            config: Search client configuration (sampling defaults)
            namespace: Template namespace
        """
        self._generator = text_generator
        self._prompts = prompts
        self._config = config
        self._namespace = namespace

    def _render(self, name: str, **values: str) -> str:
        return render_prompt(self._prompts.get(self._namespace, name), **values)

    async def _complete(
        self,
        prompt: str,
        context: Optional[RequestContext] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        options = resolve_generation_options(self._config, context)
        stream = self._generator.generate_text(prompt, options, cancel_event)
        return await collect_text(stream, cancel_event)
