"""Folds chunk-level records and hits back into logical documents."""

from shared.clients.search.models.SearchHit import SearchHit
from shared.models.document import AggregatedDocument, AggregatedSearchResult, StoredDocument
from services.document_index.QueryBuilder import CONTENT_FIELD, FILE_NAME_FIELD
from services.document_index.RoleVisibility import filter_visible


def strip_chunk_suffix(file_name: str) -> str:
    """Remove a "(chunk i of n)" annotation by cutting at the first "(".

    Only used for records written without display_name.
    """
    return file_name.split("(")[0].strip()


def get_display_name(record: StoredDocument) -> str:
    if record.display_name:
        return record.display_name
    return strip_chunk_suffix(record.file_name) if record.is_chunk() else record.file_name


def aggregate_hits(hits: list[SearchHit], visible_roles: list[str] | None) -> list[AggregatedSearchResult]:
    """Merge ranked hits into one result per logical document.

    Hits are consumed in the given (score-descending) order. A logical document
    keeps the position of its first hit; later hits only append fragments,
    content fragments before file name fragments, without deduplication.

    Args:
        hits (list[SearchHit]): Ranked backend hits.
        visible_roles (list[str] | None): Roles the caller may see. None means all.

    Returns:
        list[AggregatedSearchResult]: At most one entry per logical document.
    """
    results: dict[str, AggregatedSearchResult] = {}
    allowed = set(visible_roles) if visible_roles is not None else None
    for hit in hits:
        record = hit.document
        if allowed is not None and record.role not in allowed:
            continue
        logical_id = record.get_logical_id()
        result = results.get(logical_id)
        if result is None:
            result = AggregatedSearchResult(
                id=logical_id,
                file_name=get_display_name(record),
                upload_date=record.upload_date,
                file_size=record.file_size,
                role=record.role,
                score=hit.score,
                highlights=[],
            )
            results[logical_id] = result
        result.highlights.extend(hit.highlights.get(CONTENT_FIELD, []))
        result.highlights.extend(hit.highlights.get(FILE_NAME_FIELD, []))
    return list(results.values())


def _merge_group(logical_id: str, records: list[StoredDocument]) -> AggregatedDocument:
    root = next((record for record in records if record.id == logical_id and not record.is_chunk()), None)
    chunks = sorted((record for record in records if record.is_chunk()), key=lambda record: record.chunk_index or 0)
    base = root or chunks[0]

    if chunks:
        content = "".join(chunk.content for chunk in chunks)
    elif root.is_parent:
        # placeholder whose chunks are gone, its marker is not document text
        content = ""
    else:
        content = root.content

    return AggregatedDocument(
        id=logical_id,
        file_name=get_display_name(base),
        file_path=base.file_path,
        file_size=base.file_size,
        upload_date=base.upload_date,
        content_type=base.content_type,
        role=base.role,
        content=content,
        total_chunks=len(chunks),
    )


def aggregate_documents(records: list[StoredDocument], visible_roles: list[str] | None = None) -> list[AggregatedDocument]:
    """Reassemble logical documents from stored records.

    Chunk contents are concatenated in ascending chunk_index order regardless of
    the order the backend returned them in. Parent placeholder bodies are not
    part of the reassembled text.

    Args:
        records (list[StoredDocument]): Records in any order.
        visible_roles (list[str] | None): Roles the caller may see. None means all.

    Returns:
        list[AggregatedDocument]: One entry per logical document, in first-seen order.
    """
    groups: dict[str, list[StoredDocument]] = {}
    for record in filter_visible(records, visible_roles):
        groups.setdefault(record.get_logical_id(), []).append(record)
    return [_merge_group(logical_id, group) for logical_id, group in groups.items()]
