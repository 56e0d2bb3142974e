"""Shared utilities for consuming streamed LLM responses."""

from __future__ import annotations

import asyncio
from typing import AsyncIterable, List, Optional


def raise_if_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
    """Raise asyncio.CancelledError if the caller has signalled cancellation."""
    if cancel_event is not None and cancel_event.is_set():
        raise asyncio.CancelledError("Request cancelled")


async def collect_text(
    stream: AsyncIterable[str],
    cancel_event: Optional[asyncio.Event] = None,
) -> str:
    """Concatenate a token stream in arrival order.

    Cancellation is checked before the first token and after every token, so a
    cancelled request never yields a truncated text.
    """
    raise_if_cancelled(cancel_event)
    parts: List[str] = []
    async for token in stream:
        raise_if_cancelled(cancel_event)
        parts.append(token)
    raise_if_cancelled(cancel_event)
    return "".join(parts)


def split_lines(text: str) -> List[str]:
    """Split on line boundaries, dropping blank lines and keeping order.

    Lines are returned as written (no stripping, no deduplication).
    """
    if not text:
        return []
    return [line for line in text.splitlines() if line.strip()]
