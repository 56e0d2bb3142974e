"""
Request Context

Per-request arguments a caller can attach to ask/search, and the resolution
of generation options from configuration plus those overrides.
"""

from typing import Any, Dict, Optional

from .config import SearchClientConfig
from .schemas import GenerationOptions

# Argument names accepted in a request context
CUSTOM_RAG_MAX_TOKENS = "custom_rag_max_tokens_int"
CUSTOM_RAG_TEMPERATURE = "custom_rag_temperature_float"
CUSTOM_RAG_NUCLEUS_SAMPLING = "custom_rag_nucleus_sampling_float"


class RequestContext:
    """Arguments scoped to a single request"""

    def __init__(self, arguments: Optional[Dict[str, Any]] = None):
        self.arguments: Dict[str, Any] = dict(arguments or {})

    def set_arg(self, name: str, value: Any) -> "RequestContext":
        self.arguments[name] = value
        return self

    def get_int(self, name: str, default: int) -> int:
        value = self.arguments.get(name)
        return int(value) if value is not None else default

    def get_float(self, name: str, default: float) -> float:
        value = self.arguments.get(name)
        return float(value) if value is not None else default


def resolve_generation_options(
    config: SearchClientConfig,
    context: Optional[RequestContext] = None,
) -> GenerationOptions:
    """
    Build generation options for one call.

    Only max tokens, temperature and nucleus sampling can be overridden by
    the request context; everything else comes from configuration.
    """
    context = context or RequestContext()
    return GenerationOptions(
        max_tokens=context.get_int(CUSTOM_RAG_MAX_TOKENS, config.answer_tokens),
        temperature=context.get_float(CUSTOM_RAG_TEMPERATURE, config.temperature),
        nucleus_sampling=context.get_float(CUSTOM_RAG_NUCLEUS_SAMPLING, config.top_p),
        presence_penalty=config.presence_penalty,
        frequency_penalty=config.frequency_penalty,
        stop_sequences=list(config.stop_sequences),
        token_selection_biases=dict(config.token_selection_biases),
    )
