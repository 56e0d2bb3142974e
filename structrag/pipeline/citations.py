"""
Citation Assembler

Groups retrieved fragments into citations.

Two granularities:
- answers cite per document (every fragment of a document in one citation)
- search results cite per file, keyed by "<index>/<document id>/<file id>"
"""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from ..common.schemas import Citation, Fragment, Partition, RELEVANCE_UNAVAILABLE

logger = logging.getLogger("structrag.pipeline.citations")


def file_link(index: str, fragment: Fragment) -> str:
    # Not a URL: acts as a unique identifier for the file
    return f"{index}/{fragment.document_id}/{fragment.file_id}"


class CitationAssembler:
    """Builds Citation lists for answers and search results"""

    @staticmethod
    def from_records(index: str, fragments: Sequence[Fragment]) -> List[Citation]:
        """
        Group fragments by document id, in first-seen order.

        Relevance is not attached on this path.
        """
        citations: Dict[str, Citation] = {}
        for fragment in fragments:
            citation = citations.get(fragment.document_id)
            if citation is None:
                citation = Citation(
                    index=index,
                    document_id=fragment.document_id,
                    file_id=fragment.file_id,
                    link=fragment.web_page_url(index),
                    source_content_type=fragment.content_type,
                    source_name=fragment.file_name,
                    source_url=fragment.web_page_url(index),
                )
                citations[fragment.document_id] = citation

            citation.partitions.append(Partition(
                text=fragment.partition_text,
                partition_number=fragment.partition_number,
                section_number=fragment.section_number,
                last_update=fragment.last_update,
                tags=fragment.tags,
            ))

        return list(citations.values())

    @staticmethod
    def from_matches(
        index: str,
        matches: Iterable[Tuple[Fragment, float]],
        limit: int,
    ) -> List[Citation]:
        """
        Group (fragment, relevance) matches by file, most relevant first.

        Fragments with empty text are skipped. Stops once ``limit``
        citations exist.
        """
        results: List[Citation] = []
        by_link: Dict[str, Citation] = {}

        for fragment, relevance in matches:
            partition_text = fragment.partition_text.strip()
            if not partition_text:
                logger.error("The document partition is empty, doc: %s", fragment.record_id)
                continue

            if relevance > RELEVANCE_UNAVAILABLE:
                logger.debug("Adding result with relevance %s", relevance)

            link = file_link(index, fragment)
            citation = by_link.get(link)
            if citation is None:
                citation = Citation(
                    index=index,
                    document_id=fragment.document_id,
                    file_id=fragment.file_id,
                    link=link,
                    source_content_type=fragment.content_type,
                    source_name=fragment.file_name,
                    source_url=fragment.web_page_url(index),
                )
                by_link[link] = citation
                results.append(citation)

            citation.partitions.append(Partition(
                text=partition_text,
                relevance=relevance,
                partition_number=fragment.partition_number,
                section_number=fragment.section_number,
                last_update=fragment.last_update,
                tags=fragment.tags,
            ))

            # Guards against storage connectors returning too many records
            if len(results) >= limit:
                break

        if not results:
            logger.debug("No memories found")

        return results
