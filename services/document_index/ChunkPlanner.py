"""Chunk planner.

Splits extracted text that exceeds the backend size threshold into ordered,
contiguous, non-overlapping chunks and turns a plan into the records that
get written to the search backend.
"""

import math
from datetime import datetime

from pydantic import BaseModel

from shared.models.document import StoredDocument

DEFAULT_CHUNK_THRESHOLD = 30000  # characters per record


class Chunk(BaseModel):
    index: int
    total_chunks: int
    content: str


class ChunkPlan(BaseModel):
    """Result of planning a text against a threshold.

    Attributes:
        needs_split:          False when the text fits into a single record.
        placeholder_content:  Marker stored as body of the parent placeholder. None when not split.
        chunks:               Ordered chunks. Empty when not split.
    """

    needs_split: bool
    placeholder_content: str | None = None
    chunks: list[Chunk] = []


def make_chunk_id(parent_id: str, chunk_index: int) -> str:
    return f"{parent_id}_chunk_{chunk_index}"


def make_chunk_file_name(file_name: str, chunk_index: int, total_chunks: int) -> str:
    return f"{file_name} (chunk {chunk_index + 1} of {total_chunks})"


def make_placeholder_content(total_chunks: int) -> str:
    return f"[Large document split into {total_chunks} chunks]"


def plan_chunks(text: str, threshold: int = DEFAULT_CHUNK_THRESHOLD) -> ChunkPlan:
    """Decide whether text has to be split and compute the chunks.

    Chunk i spans [i*threshold, min((i+1)*threshold, len(text))), so joining
    the chunk contents in index order gives back the original text.

    Args:
        text (str): The extracted document text.
        threshold (int): Maximum characters per record.

    Returns:
        ChunkPlan: The split decision and the ordered chunks.

    Raises:
        ValueError: If threshold is not positive.
    """
    if threshold <= 0:
        raise ValueError(f"Chunk threshold must be positive, got {threshold}.")
    text = text or ""
    if len(text) <= threshold:
        return ChunkPlan(needs_split=False)

    total_chunks = math.ceil(len(text) / threshold)
    chunks = [
        Chunk(
            index=index,
            total_chunks=total_chunks,
            content=text[index * threshold:(index + 1) * threshold],
        )
        for index in range(total_chunks)
    ]
    return ChunkPlan(
        needs_split=True,
        placeholder_content=make_placeholder_content(total_chunks),
        chunks=chunks,
    )


def build_records(
    logical_id: str,
    text: str,
    file_name: str,
    role: str,
    upload_date: datetime,
    file_path: str = "",
    file_size: int = 0,
    content_type: str = "application/pdf",
    threshold: int = DEFAULT_CHUNK_THRESHOLD,
) -> list[StoredDocument]:
    """Build the backend records for one logical document.

    Returns a single record when the text fits, otherwise the parent
    placeholder followed by the chunks in index order.
    """
    plan = plan_chunks(text, threshold)
    metadata = {
        "file_path": file_path,
        "file_size": file_size,
        "upload_date": upload_date,
        "content_type": content_type,
        "role": role,
        "display_name": file_name,
    }
    if not plan.needs_split:
        return [StoredDocument(id=logical_id, file_name=file_name, content=text or "", **metadata)]

    records = [StoredDocument(
        id=logical_id,
        is_parent=True,
        total_chunks=len(plan.chunks),
        file_name=file_name,
        content=plan.placeholder_content,
        **metadata,
    )]
    for chunk in plan.chunks:
        records.append(StoredDocument(
            id=make_chunk_id(logical_id, chunk.index),
            parent_id=logical_id,
            chunk_index=chunk.index,
            total_chunks=chunk.total_chunks,
            file_name=make_chunk_file_name(file_name, chunk.index, chunk.total_chunks),
            content=chunk.content,
            **metadata,
        ))
    return records
