"""Chat over a single document, with persisted question/answer history."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import PersistenceFailure
from app.core.logging_config import get_logger
from app.models.chat_history import ChatHistory, ChatMessage
from app.services import ai_service
from app.services.document_service import get_owned_document

logger = get_logger(__name__)


async def ask(db: Session, owner_email: str, storage_filename: str, question: str) -> str:
    """
    Answer ``question`` from the document and append the pair to its history.

    Raises:
        NotFound: no such document for this owner
        UpstreamFailure: the AI call failed
        PersistenceFailure: the answer could not be recorded
    """
    document = get_owned_document(db, owner_email, storage_filename)
    context = ai_service.truncate_text(document.text, settings.chat_context_chars)
    logger.info(f"Chat question on {storage_filename} | context_chars={len(context)}")

    answer = await ai_service.answer_question(context, question)

    history = document.chat_history
    if history is None:
        history = ChatHistory(filename=document.filename, owner_email=owner_email)
        document.chat_history = history
    history.messages.append(ChatMessage(question=question, answer=answer))
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to record chat history for {storage_filename}: {e}")
        raise PersistenceFailure("Failed to save chat history") from e
    return answer


def get_history(db: Session, owner_email: str, storage_filename: str) -> list[dict]:
    """Stored pairs flattened into alternating user/assistant messages."""
    history = (
        db.query(ChatHistory)
        .filter(
            ChatHistory.filename == storage_filename,
            ChatHistory.owner_email == owner_email,
        )
        .first()
    )
    if history is None:
        return []

    messages = []
    for pair in history.messages:
        messages.append({"role": "user", "content": pair.question})
        messages.append({"role": "assistant", "content": pair.answer})
    return messages
