"""
Provider-agnostic LLM client for StructRAG pipelines.

Supports Anthropic, OpenAI, and Google Gemini with a shared streaming
text-generation interface.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional, Protocol

from .llm_utils import raise_if_cancelled
from .schemas import GenerationOptions

logger = logging.getLogger("structrag.common.llm_client")


class TextGenerator(Protocol):
    """Anything that turns a prompt into a stream of text fragments."""

    def generate_text(
        self,
        prompt: str,
        options: GenerationOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[str]:
        ...


class LLMClient:
    """Unified streaming text generation client across LLM providers."""

    def __init__(
        self,
        provider: str = "anthropic",
        model: str = "",
        anthropic_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        google_api_key: Optional[str] = None,
    ) -> None:
        self.provider = (provider or "anthropic").lower()
        self.model = model
        self._client = None

        if self.provider == "anthropic":
            if not anthropic_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import anthropic

                self._client = anthropic.AsyncAnthropic(api_key=anthropic_api_key)
            except ImportError:
                logger.warning("anthropic package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Anthropic client: %s", e)
            return

        if self.provider == "openai":
            if not openai_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                from openai import AsyncOpenAI

                self._client = AsyncOpenAI(api_key=openai_api_key)
            except ImportError:
                logger.warning("openai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize OpenAI client: %s", e)
            return

        if self.provider == "google":
            if not google_api_key:
                logger.info("%s API key not provided, LLM client unavailable", self.provider)
                return
            try:
                import google.generativeai as genai

                genai.configure(api_key=google_api_key)
                self._client = genai.GenerativeModel(model_name=self.model)
            except ImportError:
                logger.warning("google-generativeai package not installed")
            except Exception as e:
                logger.warning("Failed to initialize Gemini client: %s", e)
            return

        logger.warning("Unsupported LLM provider: %s", self.provider)

    @classmethod
    def from_config(cls, llm_config) -> "LLMClient":
        """Build a client for the configured provider and its model."""
        provider = (llm_config.provider or "anthropic").lower()
        model = {
            "anthropic": llm_config.anthropic_model,
            "openai": llm_config.openai_model,
            "google": llm_config.google_model,
        }.get(provider, "")
        return cls(
            provider=provider,
            model=model,
            anthropic_api_key=llm_config.anthropic_api_key,
            openai_api_key=llm_config.openai_api_key,
            google_api_key=llm_config.google_api_key,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    async def generate_text(
        self,
        prompt: str,
        options: GenerationOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[str]:
        """Stream the completion of ``prompt`` as text fragments."""
        if not self.is_available:
            raise RuntimeError("LLM client is not available")

        if self.provider == "anthropic":
            stream = self._stream_anthropic(prompt, options)
        elif self.provider == "openai":
            stream = self._stream_openai(prompt, options)
        elif self.provider == "google":
            stream = self._stream_google(prompt, options)
        else:
            raise RuntimeError(f"Unsupported LLM provider: {self.provider}")

        async for text in stream:
            raise_if_cancelled(cancel_event)
            yield text

    async def _stream_anthropic(self, prompt: str, options: GenerationOptions) -> AsyncIterator[str]:
        kwargs = {
            "model": self.model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if 0.0 < options.nucleus_sampling < 1.0:
            kwargs["top_p"] = options.nucleus_sampling
        if options.stop_sequences:
            kwargs["stop_sequences"] = options.stop_sequences

        async with self._client.messages.stream(**kwargs) as stream:
            async for text in stream.text_stream:
                yield text

    async def _stream_openai(self, prompt: str, options: GenerationOptions) -> AsyncIterator[str]:
        kwargs = {
            "model": self.model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "presence_penalty": options.presence_penalty,
            "frequency_penalty": options.frequency_penalty,
            "messages": [{"role": "user", "content": prompt}],
            "stream": True,
        }
        if options.nucleus_sampling > 0.0:
            kwargs["top_p"] = options.nucleus_sampling
        if options.stop_sequences:
            kwargs["stop"] = options.stop_sequences
        if options.token_selection_biases:
            kwargs["logit_bias"] = {str(k): v for k, v in options.token_selection_biases.items()}

        response = await self._client.chat.completions.create(**kwargs)
        async for chunk in response:
            if chunk.choices and chunk.choices[0].delta.content:
                yield chunk.choices[0].delta.content

    async def _stream_google(self, prompt: str, options: GenerationOptions) -> AsyncIterator[str]:
        generation_config = {
            "max_output_tokens": options.max_tokens,
            "temperature": options.temperature,
        }
        if options.nucleus_sampling > 0.0:
            generation_config["top_p"] = options.nucleus_sampling
        if options.stop_sequences:
            generation_config["stop_sequences"] = options.stop_sequences

        response = await self._client.generate_content_async(
            prompt,
            generation_config=generation_config,
            stream=True,
        )
        async for chunk in response:
            # .text raises on chunks without parts (blocked or finish-only)
            if not chunk.parts:
                continue
            if chunk.text:
                yield chunk.text
