"""Pydantic models for indexed documents.

Hierarchy:
  StoredDocument: one backend record: an unsplit document, a parent placeholder or a chunk.
  AggregatedDocument: logical-document view reassembled from its records.
  AggregatedSearchResult: logical-document search hit with merged highlight fragments.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredDocument(BaseModel):
    """A single record in the search backend.

    Every chunk of a logical document carries the same metadata as its parent
    placeholder, except file_name which is decorated with "(chunk i of n)".
    display_name always holds the undecorated file name.

    Attributes:
        id:            Record id. Chunks use "{parent_id}_chunk_{chunk_index}".
        parent_id:     Logical document id for chunks, None otherwise.
        is_parent:     True only for the placeholder of a chunked document.
        chunk_index:   Zero-based position of a chunk in the original text.
        total_chunks:  Number of chunks of the logical document.
        file_name:     Stored (possibly decorated) file name.
        display_name:  Clean file name shown to callers.
        file_path:     Location of the stored PDF.
        file_size:     Size of the stored PDF in bytes.
        upload_date:   Ingestion timestamp, identical across all records of a document.
        content_type:  MIME type of the source file.
        role:          Lowest role allowed to see the document.
        content:       Full text, a chunk slice, or the placeholder marker.
    """

    id: str
    parent_id: str | None = None
    is_parent: bool = False
    chunk_index: int | None = None
    total_chunks: int | None = None

    file_name: str = ""
    display_name: str | None = None
    file_path: str = ""
    file_size: int = 0
    upload_date: datetime = Field(default_factory=_utcnow)
    content_type: str = "application/pdf"
    role: str = "User"

    content: str = ""

    def is_chunk(self) -> bool:
        return bool(self.parent_id)

    def get_logical_id(self) -> str:
        """Returns the id of the logical document this record belongs to."""
        return self.parent_id if self.parent_id else self.id


class AggregatedDocument(BaseModel):
    """One logical document reassembled from all of its records."""

    id: str
    file_name: str
    file_path: str = ""
    file_size: int = 0
    upload_date: datetime
    content_type: str = "application/pdf"
    role: str
    content: str = ""
    total_chunks: int = 0


class AggregatedSearchResult(BaseModel):
    """One logical document matching a search, in first-seen rank order."""

    id: str
    file_name: str
    upload_date: datetime
    file_size: int = 0
    role: str
    score: float = 0.0
    highlights: list[str] = []
