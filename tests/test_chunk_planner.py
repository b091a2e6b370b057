"""Tests for the chunk planner."""
import math
from datetime import datetime, timezone

import pytest

from services.document_index.ChunkPlanner import (
    build_records,
    make_chunk_file_name,
    make_chunk_id,
    plan_chunks,
)


class TestPlanChunks:
    @pytest.mark.parametrize("length,threshold", [
        (1, 1),
        (10, 3),
        (9, 3),
        (30001, 30000),
        (60000, 30000),
        (65000, 30000),
        (12345, 1000),
    ])
    def test_chunks_reassemble_to_original(self, length, threshold):
        text = "".join(chr(ord("a") + i % 26) for i in range(length))
        plan = plan_chunks(text, threshold)
        if length <= threshold:
            assert not plan.needs_split
            return
        assert plan.needs_split
        assert len(plan.chunks) == math.ceil(length / threshold)
        assert "".join(chunk.content for chunk in plan.chunks) == text
        assert [chunk.index for chunk in plan.chunks] == list(range(len(plan.chunks)))
        assert all(chunk.content for chunk in plan.chunks)
        assert all(chunk.total_chunks == len(plan.chunks) for chunk in plan.chunks)

    def test_text_at_threshold_is_not_split(self):
        plan = plan_chunks("x" * 100, 100)
        assert not plan.needs_split
        assert plan.chunks == []

    def test_empty_text_is_not_split(self):
        plan = plan_chunks("", 100)
        assert not plan.needs_split

    def test_last_chunk_length(self):
        plan = plan_chunks("x" * 65000, 30000)
        assert [len(chunk.content) for chunk in plan.chunks] == [30000, 30000, 5000]

    def test_evenly_divisible_last_chunk_is_full(self):
        plan = plan_chunks("x" * 60000, 30000)
        assert [len(chunk.content) for chunk in plan.chunks] == [30000, 30000]

    def test_placeholder_marker(self):
        plan = plan_chunks("x" * 65000, 30000)
        assert plan.placeholder_content == "[Large document split into 3 chunks]"

    @pytest.mark.parametrize("threshold", [0, -5])
    def test_invalid_threshold(self, threshold):
        with pytest.raises(ValueError):
            plan_chunks("abc", threshold)


class TestBuildRecords:
    upload_date = datetime(2025, 3, 8, 15, 23, tzinfo=timezone.utc)

    def test_small_document_single_record(self):
        records = build_records("doc-1", "hello", "a.pdf", "User", self.upload_date, threshold=10)
        assert len(records) == 1
        record = records[0]
        assert record.id == "doc-1"
        assert record.parent_id is None
        assert not record.is_parent
        assert record.content == "hello"
        assert record.file_name == "a.pdf"

    def test_large_document_parent_and_chunks(self):
        text = "abcdefghij" * 3
        records = build_records("doc-1", text, "report (final).pdf", "Editor", self.upload_date, file_size=42, threshold=12)
        parent, chunks = records[0], records[1:]

        assert parent.id == "doc-1"
        assert parent.is_parent
        assert parent.parent_id is None
        assert parent.content == "[Large document split into 3 chunks]"

        assert [chunk.id for chunk in chunks] == ["doc-1_chunk_0", "doc-1_chunk_1", "doc-1_chunk_2"]
        assert all(chunk.parent_id == "doc-1" for chunk in chunks)
        assert [chunk.chunk_index for chunk in chunks] == [0, 1, 2]
        assert chunks[1].file_name == "report (final).pdf (chunk 2 of 3)"
        assert all(chunk.display_name == "report (final).pdf" for chunk in chunks)
        assert all(chunk.role == "Editor" and chunk.file_size == 42 for chunk in chunks)
        assert all(chunk.upload_date == self.upload_date for chunk in chunks)
        assert "".join(chunk.content for chunk in chunks) == text

    def test_naming_helpers(self):
        assert make_chunk_id("p", 4) == "p_chunk_4"
        assert make_chunk_file_name("f.pdf", 0, 2) == "f.pdf (chunk 1 of 2)"
