"""Shared fixtures for the StructRAG tests."""

import pytest

from structrag.common.config import PROMPTS_DIR, SearchClientConfig
from structrag.common.prompts import PromptStore

from fakes import make_fragment


@pytest.fixture
def prompts():
    return PromptStore.from_directory(PROMPTS_DIR)


@pytest.fixture
def search_config():
    return SearchClientConfig(max_matches_count=10, answer_tokens=256, empty_answer="INFO NOT FOUND")


@pytest.fixture
def fragment_factory():
    return make_fragment


@pytest.fixture
def three_fragments():
    """3 fragments spanning 2 documents"""
    return [
        make_fragment("doc-ai", "AI improves forecasting.", file_name="AdvancementsInAI.txt", partition_number=0),
        make_fragment("doc-econ", "Downturns reduce budgets.", file_name="EconomicDownturn.txt", partition_number=0),
        make_fragment("doc-ai", "AI automates support.", file_name="AdvancementsInAI.txt", partition_number=1),
    ]
