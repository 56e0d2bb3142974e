"""Tests for request context and generation option resolution."""

from structrag.common.config import SearchClientConfig
from structrag.common.context import (
    CUSTOM_RAG_MAX_TOKENS,
    CUSTOM_RAG_NUCLEUS_SAMPLING,
    CUSTOM_RAG_TEMPERATURE,
    RequestContext,
    resolve_generation_options,
)


class TestResolveGenerationOptions:
    def test_defaults_from_config(self):
        cfg = SearchClientConfig(answer_tokens=128, temperature=0.1, top_p=0.5,
                                 stop_sequences=["###"], token_selection_biases={1: 2.0})
        options = resolve_generation_options(cfg)
        assert options.max_tokens == 128
        assert options.temperature == 0.1
        assert options.nucleus_sampling == 0.5
        assert options.stop_sequences == ["###"]
        assert options.token_selection_biases == {1: 2.0}

    def test_context_overrides_three_arguments(self):
        cfg = SearchClientConfig(answer_tokens=128, presence_penalty=0.4)
        context = RequestContext({
            CUSTOM_RAG_MAX_TOKENS: "2048",
            CUSTOM_RAG_TEMPERATURE: 0.9,
            CUSTOM_RAG_NUCLEUS_SAMPLING: 0.8,
        })
        options = resolve_generation_options(cfg, context)
        assert options.max_tokens == 2048
        assert options.temperature == 0.9
        assert options.nucleus_sampling == 0.8
        assert options.presence_penalty == 0.4

    def test_other_arguments_ignored(self):
        cfg = SearchClientConfig(answer_tokens=128)
        context = RequestContext({"custom_rag_presence_penalty_float": 1.0})
        options = resolve_generation_options(cfg, context)
        assert options.presence_penalty == 0.0
        assert options.max_tokens == 128

    def test_options_do_not_alias_config_lists(self):
        cfg = SearchClientConfig(stop_sequences=["a"])
        options = resolve_generation_options(cfg)
        options.stop_sequences.append("b")
        assert cfg.stop_sequences == ["a"]


class TestRequestContext:
    def test_set_arg_chains(self):
        context = RequestContext().set_arg(CUSTOM_RAG_MAX_TOKENS, 10)
        assert context.get_int(CUSTOM_RAG_MAX_TOKENS, 0) == 10
        assert context.get_float(CUSTOM_RAG_TEMPERATURE, 0.3) == 0.3
