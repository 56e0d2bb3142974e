"""Tests for PromptStore and template rendering."""

import pytest

from structrag.common.prompts import PromptNotFoundError, PromptStore, render_prompt


class TestPromptStore:
    def test_from_directory_reads_namespaces(self, tmp_path):
        (tmp_path / "StructRAG").mkdir()
        (tmp_path / "StructRAG" / "Route.txt").write_text("Route {{$query}}")
        (tmp_path / "Other").mkdir()
        (tmp_path / "Other" / "Route.txt").write_text("other")
        (tmp_path / "StructRAG" / "notes.md").write_text("ignored")

        store = PromptStore.from_directory(tmp_path)

        assert len(store) == 2
        assert store.get("StructRAG", "Route") == "Route {{$query}}"
        assert store.get("Other", "Route") == "other"
        assert ("StructRAG", "notes") not in store

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PromptStore.from_directory(tmp_path / "missing")

    def test_get_missing_raises(self):
        store = PromptStore({("StructRAG", "Route"): "x"})
        with pytest.raises(PromptNotFoundError) as exc_info:
            store.get("StructRAG", "Merge")
        assert exc_info.value.namespace == "StructRAG"
        assert exc_info.value.name == "Merge"

    def test_validate_lists_all_missing(self):
        store = PromptStore({("StructRAG", "Route"): "x"})
        with pytest.raises(PromptNotFoundError, match="Decompose, Merge"):
            store.validate("StructRAG", ["Route", "Decompose", "Merge"])

    def test_templates_cannot_change(self):
        source = {("StructRAG", "Route"): "original"}
        store = PromptStore(source)
        source[("StructRAG", "Route")] = "changed"
        assert store.get("StructRAG", "Route") == "original"

    def test_shipped_templates_cover_pipeline(self, prompts):
        from structrag.pipeline.search_client import REQUIRED_PROMPTS
        prompts.validate("StructRAG", REQUIRED_PROMPTS)


class TestRenderPrompt:
    def test_replaces_every_occurrence(self):
        assert render_prompt("{{$a}} and {{$a}}", a="x") == "x and x"

    def test_unknown_markers_left_alone(self):
        assert render_prompt("{{$a}} {{$b}}", a="1") == "1 {{$b}}"

    def test_values_inserted_literally(self):
        # values containing braces or markers must not be re-expanded
        assert render_prompt("{{$a}}", a="{{$b}} {x}", b="no") == "{{$b}} {x}"

    def test_shipped_templates_fully_rendered(self, prompts):
        rendered = render_prompt(
            prompts.get("StructRAG", "Route"), query="q", titles="A.txt B.txt"
        )
        assert "{{$" not in rendered
        assert "A.txt B.txt" in rendered
