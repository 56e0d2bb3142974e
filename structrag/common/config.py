"""
Configuration Management for StructRAG

Loads configuration from ~/.structrag/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger("structrag.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".structrag"
CONFIG_PATH = CONFIG_DIR / "config.json"

# Project paths (relative to this file)
PACKAGE_ROOT = Path(__file__).parent.parent  # structrag/
PROMPTS_DIR = PACKAGE_ROOT / "prompts"


class ConfigurationError(ValueError):
    """Raised when a configuration value is out of range"""


@dataclass
class LLMConfig:
    """LLM provider configuration used for every generation call"""
    provider: str = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash-exp"


@dataclass
class SearchClientConfig:
    """Search client configuration (retrieval limits and sampling defaults)"""
    max_matches_count: int = 100
    answer_tokens: int = 300
    empty_answer: str = "INFO NOT FOUND"
    temperature: float = 0.0
    top_p: float = 0.0
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0
    stop_sequences: List[str] = field(default_factory=list)
    token_selection_biases: Dict[int, float] = field(default_factory=dict)
    extract_concurrency: int = 1  # >1 extracts sub-questions concurrently

    def validate(self) -> None:
        """Raise ConfigurationError on out-of-range values"""
        if self.max_matches_count < 1:
            raise ConfigurationError("max_matches_count must be greater than 0")
        if self.answer_tokens < 1:
            raise ConfigurationError("answer_tokens must be greater than 0")
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError("temperature must be between 0 and 2")
        if not 0.0 <= self.top_p <= 1.0:
            raise ConfigurationError("top_p must be between 0 and 1")
        if not -2.0 <= self.presence_penalty <= 2.0:
            raise ConfigurationError("presence_penalty must be between -2 and 2")
        if not -2.0 <= self.frequency_penalty <= 2.0:
            raise ConfigurationError("frequency_penalty must be between -2 and 2")
        if self.extract_concurrency < 1:
            raise ConfigurationError("extract_concurrency must be greater than 0")


@dataclass
class PromptConfig:
    """Prompt template location"""
    templates_dir: str = str(PROMPTS_DIR)
    namespace: str = "StructRAG"


@dataclass
class MemoryConfig:
    """Memory backend configuration"""
    backend: str = ""  # "package.module:factory"; empty uses SimpleTextMemoryDb
    snapshot_path: str = ""  # JSON snapshot loaded by SimpleTextMemoryDb
    default_index: str = "default"


@dataclass
class StructRAGConfig:
    """Main StructRAG configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    search: SearchClientConfig = field(default_factory=SearchClientConfig)
    prompts: PromptConfig = field(default_factory=PromptConfig)
    memory: MemoryConfig = field(default_factory=MemoryConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    return LLMConfig(
        provider=llm_data.get("provider", "anthropic"),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", "claude-sonnet-4-20250514"),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", "gpt-4o-mini"),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", "gemini-2.0-flash-exp"),
    )


def _parse_search_config(data: dict) -> SearchClientConfig:
    """Parse search section from config dict"""
    search_data = data.get("search", {})
    biases = search_data.get("token_selection_biases", {})
    return SearchClientConfig(
        max_matches_count=search_data.get("max_matches_count", 100),
        answer_tokens=search_data.get("answer_tokens", 300),
        empty_answer=search_data.get("empty_answer", "INFO NOT FOUND"),
        temperature=search_data.get("temperature", 0.0),
        top_p=search_data.get("top_p", 0.0),
        presence_penalty=search_data.get("presence_penalty", 0.0),
        frequency_penalty=search_data.get("frequency_penalty", 0.0),
        stop_sequences=list(search_data.get("stop_sequences", [])),
        # JSON object keys are strings, token ids are ints
        token_selection_biases={int(k): float(v) for k, v in biases.items()},
        extract_concurrency=search_data.get("extract_concurrency", 1),
    )


def _parse_prompt_config(data: dict) -> PromptConfig:
    """Parse prompts section from config dict"""
    prompt_data = data.get("prompts", {})
    return PromptConfig(
        templates_dir=prompt_data.get("templates_dir", str(PROMPTS_DIR)),
        namespace=prompt_data.get("namespace", "StructRAG"),
    )


def _parse_memory_config(data: dict) -> MemoryConfig:
    """Parse memory section from config dict"""
    memory_data = data.get("memory", {})
    return MemoryConfig(
        backend=memory_data.get("backend", ""),
        snapshot_path=memory_data.get("snapshot_path", ""),
        default_index=memory_data.get("default_index", "default"),
    )


def load_config() -> StructRAGConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.structrag/config.json)
    3. Default values
    """
    config = StructRAGConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.search = _parse_search_config(data)
            config.prompts = _parse_prompt_config(data)
            config.memory = _parse_memory_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Search env var overrides
    if os.getenv("STRUCTRAG_MAX_MATCHES"):
        config.search.max_matches_count = int(os.getenv("STRUCTRAG_MAX_MATCHES"))
    if os.getenv("STRUCTRAG_ANSWER_TOKENS"):
        config.search.answer_tokens = int(os.getenv("STRUCTRAG_ANSWER_TOKENS"))
    if os.getenv("STRUCTRAG_TEMPERATURE"):
        config.search.temperature = float(os.getenv("STRUCTRAG_TEMPERATURE"))
    if os.getenv("STRUCTRAG_TOP_P"):
        config.search.top_p = float(os.getenv("STRUCTRAG_TOP_P"))
    if os.getenv("STRUCTRAG_EMPTY_ANSWER"):
        config.search.empty_answer = os.getenv("STRUCTRAG_EMPTY_ANSWER")
    if os.getenv("STRUCTRAG_EXTRACT_CONCURRENCY"):
        config.search.extract_concurrency = int(os.getenv("STRUCTRAG_EXTRACT_CONCURRENCY"))

    if os.getenv("STRUCTRAG_PROMPTS_DIR"):
        config.prompts.templates_dir = os.getenv("STRUCTRAG_PROMPTS_DIR")
    if os.getenv("STRUCTRAG_MEMORY_BACKEND"):
        config.memory.backend = os.getenv("STRUCTRAG_MEMORY_BACKEND")
    if os.getenv("STRUCTRAG_MEMORY_SNAPSHOT"):
        config.memory.snapshot_path = os.getenv("STRUCTRAG_MEMORY_SNAPSHOT")

    # LLM env var overrides (track env-sourced keys so they are never saved)
    _env_llm_map = {
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "OPENAI_API_KEY": "openai_api_key",
        "OPENAI_MODEL": "openai_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "STRUCTRAG_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    return config


def save_config(config: StructRAGConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    _llm_api_key_fields = {
        "anthropic_api_key", "openai_api_key", "google_api_key",
    }
    llm_section = {
        "provider": config.llm.provider,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
    }
    for key in _llm_api_key_fields:
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "llm": llm_section,
        "search": {
            "max_matches_count": config.search.max_matches_count,
            "answer_tokens": config.search.answer_tokens,
            "empty_answer": config.search.empty_answer,
            "temperature": config.search.temperature,
            "top_p": config.search.top_p,
            "presence_penalty": config.search.presence_penalty,
            "frequency_penalty": config.search.frequency_penalty,
            "stop_sequences": config.search.stop_sequences,
            "token_selection_biases": {
                str(k): v for k, v in config.search.token_selection_biases.items()
            },
            "extract_concurrency": config.search.extract_concurrency,
        },
        "prompts": {
            "templates_dir": config.prompts.templates_dir,
            "namespace": config.prompts.namespace,
        },
        "memory": {
            "backend": config.memory.backend,
            "snapshot_path": config.memory.snapshot_path,
            "default_index": config.memory.default_index,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)
