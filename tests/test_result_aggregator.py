"""Tests for folding records and hits into logical documents."""
from datetime import datetime, timezone

from shared.clients.search.models.SearchHit import SearchHit
from shared.models.document import StoredDocument
from services.document_index.ChunkPlanner import build_records
from services.document_index.ResultAggregator import aggregate_documents, aggregate_hits, strip_chunk_suffix

UPLOAD_DATE = datetime(2025, 3, 8, tzinfo=timezone.utc)


def _chunk(parent_id, index, total, content="", role="User", display_name="big.pdf"):
    return StoredDocument(
        id=f"{parent_id}_chunk_{index}",
        parent_id=parent_id,
        chunk_index=index,
        total_chunks=total,
        file_name=f"big.pdf (chunk {index + 1} of {total})",
        display_name=display_name,
        content=content,
        role=role,
        upload_date=UPLOAD_DATE,
    )


def _single(doc_id, content="", role="User", file_name="small.pdf"):
    return StoredDocument(id=doc_id, file_name=file_name, content=content, role=role, upload_date=UPLOAD_DATE)


class TestAggregateHits:
    def test_one_result_per_logical_document_in_first_seen_order(self):
        hits = [
            SearchHit(document=_chunk("big", 1, 3), highlights={"content": ["b1"]}, score=9.0),
            SearchHit(document=_single("small"), highlights={"content": ["s1"]}, score=5.0),
            SearchHit(document=_chunk("big", 0, 3), highlights={"content": ["b0"], "file_name": ["<mark>big</mark>"]}, score=2.0),
        ]
        results = aggregate_hits(hits, ["User"])
        assert [result.id for result in results] == ["big", "small"]
        assert results[0].file_name == "big.pdf"
        assert results[0].score == 9.0
        assert results[0].highlights == ["b1", "b0", "<mark>big</mark>"]
        assert results[1].highlights == ["s1"]

    def test_fragments_not_deduplicated(self):
        hits = [
            SearchHit(document=_chunk("big", 0, 2), highlights={"content": ["same"]}, score=2.0),
            SearchHit(document=_chunk("big", 1, 2), highlights={"content": ["same"]}, score=1.0),
        ]
        assert aggregate_hits(hits, None)[0].highlights == ["same", "same"]

    def test_invisible_roles_discarded(self):
        hits = [
            SearchHit(document=_single("secret", role="Admin"), score=3.0),
            SearchHit(document=_single("public", role="User"), score=1.0),
        ]
        assert [result.id for result in aggregate_hits(hits, ["Internal", "User"])] == ["public"]

    def test_legacy_chunk_name_stripped_at_parenthesis(self):
        legacy = _chunk("old", 0, 2, display_name=None)
        results = aggregate_hits([SearchHit(document=legacy, score=1.0)], None)
        assert results[0].file_name == "big.pdf"
        assert strip_chunk_suffix("report.pdf (chunk 1 of 2)") == "report.pdf"

    def test_display_name_keeps_parentheses(self):
        record = _chunk("p", 0, 2, display_name="minutes (draft).pdf")
        assert aggregate_hits([SearchHit(document=record, score=1.0)], None)[0].file_name == "minutes (draft).pdf"


class TestAggregateDocuments:
    def test_chunks_concatenated_in_index_order(self):
        text = "0123456789" * 7
        records = build_records("big", text, "big.pdf", "User", UPLOAD_DATE, threshold=20)
        shuffled = [records[3], records[0], records[4], records[2], records[1]]
        documents = aggregate_documents(shuffled)
        assert len(documents) == 1
        assert documents[0].id == "big"
        assert documents[0].content == text
        assert documents[0].file_name == "big.pdf"
        assert documents[0].total_chunks == 4

    def test_placeholder_marker_not_part_of_body(self):
        records = build_records("big", "x" * 50, "big.pdf", "User", UPLOAD_DATE, threshold=20)
        assert "Large document" not in aggregate_documents(records)[0].content

    def test_unsplit_document_passthrough(self):
        documents = aggregate_documents([_single("a", "body", file_name="a.pdf")])
        assert documents[0].content == "body"
        assert documents[0].file_name == "a.pdf"
        assert documents[0].total_chunks == 0

    def test_role_filter(self):
        records = [_single("a", role="Admin"), _single("b", role="User")]
        assert [document.id for document in aggregate_documents(records, ["User"])] == ["b"]

    def test_chunks_without_parent_still_aggregate(self):
        records = [_chunk("orphan", 1, 2, "world"), _chunk("orphan", 0, 2, "hello ")]
        documents = aggregate_documents(records)
        assert documents[0].content == "hello world"
        assert documents[0].file_name == "big.pdf"
