"""Document store: persistence of extracted text and its chat history."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import NotFound, PersistenceFailure
from app.core.logging_config import get_logger
from app.models.chat_history import ChatHistory
from app.models.document import Document

logger = get_logger(__name__)


def authorize_owner(document: Document | None, owner_email: str) -> Document:
    """
    Ownership guard applied to every loaded document.

    A document belonging to someone else is reported exactly like a missing
    one, so callers cannot probe for other users' filenames.
    """
    if document is None or document.owner_email != owner_email:
        raise NotFound("Document not found")
    return document


def get_owned_document(db: Session, owner_email: str, storage_filename: str) -> Document:
    document = db.query(Document).filter(Document.filename == storage_filename).first()
    return authorize_owner(document, owner_email)


def create_document(
    db: Session,
    owner_email: str,
    storage_filename: str,
    original_name: str,
    text: str,
) -> Document:
    """Persist a document together with its empty chat history, or neither."""
    document = Document(
        owner_email=owner_email,
        filename=storage_filename,
        original_name=original_name,
        text=text,
    )
    document.chat_history = ChatHistory(
        filename=storage_filename,
        owner_email=owner_email,
    )
    try:
        db.add(document)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save document {storage_filename} for {owner_email}: {e}")
        raise PersistenceFailure("Upload failed") from e
    db.refresh(document)
    logger.info(f"Created document {storage_filename} ({original_name!r}) for {owner_email}")
    return document


def list_documents(db: Session, owner_email: str) -> list[Document]:
    return (
        db.query(Document)
        .filter(Document.owner_email == owner_email)
        .order_by(Document.id)
        .all()
    )


def delete_document(db: Session, owner_email: str, storage_filename: str) -> None:
    """
    Remove a document, its chat history and its place in the owner's set.

    The ORM cascade deletes chat messages and the history row before the
    document row, all in one transaction. The owner's set is derived from
    ``owner_email`` so it shrinks with the delete.
    """
    document = get_owned_document(db, owner_email, storage_filename)
    try:
        db.delete(document)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete document {storage_filename}: {e}")
        raise PersistenceFailure("Failed to delete document") from e
    logger.info(f"Deleted document {storage_filename} for {owner_email}")


def get_document_text(db: Session, owner_email: str, storage_filename: str) -> str:
    return get_owned_document(db, owner_email, storage_filename).text or ""
