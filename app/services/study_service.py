"""Summary and quiz generation for a stored document."""

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import UpstreamFailure
from app.core.logging_config import get_logger
from app.services import ai_service
from app.services.document_service import get_document_text

logger = get_logger(__name__)


async def summarize(db: Session, owner_email: str, storage_filename: str) -> str:
    text = get_document_text(db, owner_email, storage_filename)
    context = ai_service.truncate_text(text, settings.summary_context_chars)
    logger.info(f"Generating summary | file={storage_filename} | context_chars={len(context)}")

    summary = await ai_service.summarize_document(context)
    if not summary.strip():
        logger.warning(f"Empty summary returned for {storage_filename}")
        raise UpstreamFailure("Summary generation failed")
    return summary


async def generate_quiz(db: Session, owner_email: str, storage_filename: str) -> str:
    """Raw quiz text from the model. Parsing is left to the consumer."""
    text = get_document_text(db, owner_email, storage_filename)
    context = ai_service.truncate_text(text, settings.quiz_context_chars)
    logger.info(f"Generating quiz | file={storage_filename} | context_chars={len(context)}")

    return await ai_service.generate_quiz(context)
