from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_storage
from app.core.logging_config import get_logger
from app.db.database import get_db
from app.models.user import User
from app.schemas.document import (
    DocumentItem,
    DocumentListResponse,
    DocumentRequest,
    SuccessResponse,
    SupportedFormatsResponse,
    UploadResponse,
)
from app.services import document_service
from app.services.file_processor import get_supported_formats, process_file, validate_file
from app.services.storage import UploadStorage

router = APIRouter(tags=["Documents"])

logger = get_logger(__name__)


@router.post("/upload", response_model=UploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: UploadStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """
    Upload a PDF, DOCX or PPTX file, extract its text and store it.

    The raw file is kept under a generated storage filename, which becomes
    the document's id for every later request.
    """
    original_name = file.filename or "unknown"
    try:
        file_content = await file.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Failed to read file: {str(e)}")

    validate_file(file_content, original_name)

    storage_filename = storage.save(original_name, file_content)
    try:
        text = process_file(file_content, original_name)
        document = document_service.create_document(
            db,
            owner_email=current_user.email,
            storage_filename=storage_filename,
            original_name=original_name,
            text=text,
        )
    except Exception:
        storage.delete(storage_filename)
        raise

    return UploadResponse(
        success=True,
        filename=document.filename,
        original_name=document.original_name,
    )


@router.get("/upload/formats", response_model=SupportedFormatsResponse)
def get_upload_formats():
    return get_supported_formats()


@router.get("/my-documents", response_model=DocumentListResponse)
def list_my_documents(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    documents = document_service.list_documents(db, current_user.email)
    return DocumentListResponse(
        documents=[DocumentItem(id=d.filename, name=d.original_name) for d in documents]
    )


@router.delete("/delete-document", response_model=SuccessResponse)
def delete_document(
    body: DocumentRequest,
    db: Session = Depends(get_db),
    storage: UploadStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    """Delete a document with its chat history and stored file (owner only)."""
    document_service.delete_document(db, current_user.email, body.filename)
    storage.delete(body.filename)
    return SuccessResponse(success=True)
