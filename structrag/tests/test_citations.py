"""Tests for CitationAssembler grouping."""

from structrag.common.schemas import RELEVANCE_UNAVAILABLE
from structrag.pipeline.citations import CitationAssembler, file_link

from fakes import make_fragment


class TestFromRecords:
    def test_groups_by_document_first_seen_order(self, three_fragments):
        citations = CitationAssembler.from_records("default", three_fragments)

        assert [c.document_id for c in citations] == ["doc-ai", "doc-econ"]
        assert [p.partition_number for p in citations[0].partitions] == [0, 1]
        assert all(p.relevance == RELEVANCE_UNAVAILABLE for c in citations for p in c.partitions)

    def test_partition_count_matches_fragments(self, three_fragments):
        citations = CitationAssembler.from_records("default", three_fragments)
        assert sum(len(c.partitions) for c in citations) == len(three_fragments)

    def test_link_is_download_url_without_source_url(self):
        fragment = make_fragment("doc 1", "text", file_name="My File.pdf")
        citation = CitationAssembler.from_records("my index", [fragment])[0]
        assert citation.link == "/download?index=my%20index&documentId=doc%201&filename=My%20File.pdf"
        assert citation.source_name == "My File.pdf"

    def test_link_prefers_source_url(self):
        fragment = make_fragment("doc", "text", url="https://example.com/page")
        citation = CitationAssembler.from_records("i", [fragment])[0]
        assert citation.link == "https://example.com/page"

    def test_empty(self):
        assert CitationAssembler.from_records("i", []) == []


class TestFromMatches:
    def test_file_link_format(self):
        fragment = make_fragment("doc", "t", file_id="file")
        assert file_link("idx", fragment) == "idx/doc/file"

    def test_text_is_trimmed(self):
        matches = [(make_fragment("doc", "  padded text \n"), 0.5)]
        citation = CitationAssembler.from_matches("i", matches, limit=10)[0]
        assert citation.partitions[0].text == "padded text"
        assert citation.partitions[0].relevance == 0.5

    def test_same_file_partitions_share_citation(self):
        matches = [
            (make_fragment("doc", "a", file_id="f", partition_number=0), 0.9),
            (make_fragment("doc", "b", file_id="f", partition_number=1), 0.8),
        ]
        citations = CitationAssembler.from_matches("i", matches, limit=10)
        assert len(citations) == 1
        assert [p.text for p in citations[0].partitions] == ["a", "b"]

    def test_stops_at_limit(self):
        matches = [(make_fragment(f"doc{i}", "t"), 0.5) for i in range(4)]
        assert len(CitationAssembler.from_matches("i", matches, limit=3)) == 3
