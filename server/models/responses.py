from pydantic import BaseModel

from services.document_index.ReindexService import ReindexStatus


class UploadedDocument(BaseModel):
    id: str
    file_name: str


class UploadResponse(BaseModel):
    documents: list[UploadedDocument]


class DeleteResponse(BaseModel):
    success: bool


class ReindexResponse(BaseModel):
    status: str
    success: bool | None = None
    details: ReindexStatus | None = None
