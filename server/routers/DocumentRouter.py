"""Document router: upload, search, download, delete and reindex of PDF documents.

Authentication happens upstream; the caller's role arrives in X-User-Role.
"""

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from server.dependencies.auth import get_visible_roles, require_roles, verify_api_key
from server.models.requests import SearchParams
from server.models.responses import DeleteResponse, ReindexResponse, UploadedDocument, UploadResponse
from services.document_index.RoleVisibility import ROLE_HIERARCHY, is_known_role

PDF_CONTENT_TYPE = "application/pdf"

router = APIRouter(prefix="/api/pdf", tags=["pdf"], dependencies=[Depends(verify_api_key)])


@router.post("/upload")
async def upload_pdfs(
    request: Request,
    files: list[UploadFile] = File(...),
    role: str | None = Query(default=None),
    _: str = Depends(require_roles("Admin", "Editor")),
) -> UploadResponse:
    """Store, extract and index one or more PDF files.

    Args:
        request (Request): FastAPI request (provides app.state.ingest_service).
        files (list[UploadFile]): The uploaded PDFs.
        role (str | None): Lowest role allowed to see the documents. Defaults to "User".

    Returns:
        UploadResponse: Logical ids of the indexed documents.

    Raises:
        HTTPException: 400 if no file was sent, a file is not a PDF or the role is unknown.
    """
    logging = request.app.state.logging
    if not files:
        logging.warning("No file uploaded")
        raise HTTPException(status_code=400, detail="No file uploaded")
    if role is not None and not is_known_role(role):
        raise HTTPException(status_code=400, detail=f"Unknown role '{role}', expected one of: {', '.join(ROLE_HIERARCHY)}")
    for upload in files:
        if (upload.content_type or "").lower() != PDF_CONTENT_TYPE:
            raise HTTPException(status_code=400, detail="Only PDF files are allowed")

    ingest_service = request.app.state.ingest_service
    uploaded: list[UploadedDocument] = []
    for upload in files:
        data = await upload.read()
        document_id = await ingest_service.do_ingest_upload(
            data=data,
            file_name=upload.filename or "document.pdf",
            role=role,
            content_type=PDF_CONTENT_TYPE,
        )
        uploaded.append(UploadedDocument(id=document_id, file_name=upload.filename or "document.pdf"))
    logging.info("Uploaded %d PDF file(s).", len(uploaded))
    return UploadResponse(documents=uploaded)


@router.get("/search")
async def search_pdfs(
    request: Request,
    query: str = Query(default=""),
    proximity_distance: int | None = Query(default=None, alias="proximityDistance", ge=0),
    visible_roles: list[str] = Depends(get_visible_roles),
) -> JSONResponse:
    """Full-text search. An empty query lists every visible document."""
    params = SearchParams(query=query, proximity_distance=proximity_distance)
    if params.proximity_distance is None:
        params.proximity_distance = request.app.state.default_proximity
    request.app.state.logging.info("Search query=%r roles=%s", params.query[:80], visible_roles)

    document_service = request.app.state.document_service
    results = await document_service.search(params.query, visible_roles, params.proximity_distance)
    return JSONResponse(content=[result.model_dump(mode="json") for result in results])


@router.post("/reindex")
async def reindex_documents(
    request: Request,
    wait: bool = Query(default=False),
    _: str = Depends(require_roles("Admin")),
) -> ReindexResponse:
    """Rebuild the whole index.

    Runs as a background task unless wait=true.

    Raises:
        HTTPException: 409 if a rebuild is already running.
    """
    document_service = request.app.state.document_service
    reindex_service = document_service.reindex_service
    if wait:
        if reindex_service.is_running():
            raise HTTPException(status_code=409, detail="Reindex already running")
        success = await document_service.reindex_all()
        request.app.state.logging.info("Reindex finished, success=%s", success)
        return ReindexResponse(status="finished", success=success, details=reindex_service.get_status())

    if not reindex_service.start_background(timeout=request.app.state.reindex_timeout):
        raise HTTPException(status_code=409, detail="Reindex already running")
    request.app.state.logging.info("Reindex started in background.")
    return ReindexResponse(status="accepted", details=reindex_service.get_status())


@router.get("/reindex/status")
async def reindex_status(
    request: Request,
    _: str = Depends(require_roles("Admin")),
) -> ReindexResponse:
    reindex_service = request.app.state.document_service.reindex_service
    status = reindex_service.get_status()
    return ReindexResponse(status=status.state, details=status)


@router.get("/{document_id}")
async def get_pdf(
    request: Request,
    document_id: str,
    visible_roles: list[str] = Depends(get_visible_roles),
) -> JSONResponse:
    """Return one logical document with its reassembled text.

    Raises:
        DocumentNotFound: 404 if it does not exist or the caller may not see it.
    """
    document = await request.app.state.document_service.get_required(document_id, visible_roles)
    return JSONResponse(content=document.model_dump(mode="json"))


@router.get("/{document_id}/file")
async def download_pdf(
    request: Request,
    document_id: str,
    visible_roles: list[str] = Depends(get_visible_roles),
) -> Response:
    """Return the stored PDF file of a logical document."""
    document = await request.app.state.document_service.get_required(document_id, visible_roles)
    data = await request.app.state.ingest_service.do_read_file(document.file_path)
    if data is None:
        request.app.state.logging.warning("PDF file with id %s not found on server", document_id)
        raise HTTPException(status_code=404, detail="PDF file not found on server")
    return Response(
        content=data,
        media_type=document.content_type,
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )


@router.delete("/{document_id}")
async def delete_pdf(
    request: Request,
    document_id: str,
    visible_roles: list[str] = Depends(get_visible_roles),
    _: str = Depends(require_roles("Admin", "Editor")),
) -> DeleteResponse:
    """Delete a logical document, all of its chunks and its stored file.

    Raises:
        DocumentNotFound: 404 if it does not exist or the caller may not see it.
    """
    document_service = request.app.state.document_service
    document = await document_service.get_required(document_id, visible_roles)

    deleted = await document_service.delete(document_id)
    if deleted:
        await request.app.state.ingest_service.do_remove_file(document.file_path)
    return DeleteResponse(success=deleted)
