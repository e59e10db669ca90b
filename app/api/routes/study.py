from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.database import get_db
from app.models.user import User
from app.schemas.document import DocumentRequest
from app.schemas.study import (
    ChatHistoryResponse,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    QuizResponse,
    SummaryResponse,
)
from app.services import chat_service, study_service

router = APIRouter(tags=["Study Tools"])


@router.post("/chat-history", response_model=ChatHistoryResponse)
def get_chat_history(
    body: DocumentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    messages = chat_service.get_history(db, current_user.email, body.filename)
    return ChatHistoryResponse(messages=[ChatMessage(**m) for m in messages])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Answer a question using only the selected document."""
    answer = await chat_service.ask(db, current_user.email, body.filename, body.question)
    return ChatResponse(answer=answer)


@router.post("/summary", response_model=SummaryResponse)
async def summarize_document(
    body: DocumentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    summary = await study_service.summarize(db, current_user.email, body.filename)
    return SummaryResponse(summary=summary)


@router.post("/quiz", response_model=QuizResponse)
async def generate_quiz(
    body: DocumentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Generate a 5-question quiz. The model's text is returned unparsed."""
    quiz = await study_service.generate_quiz(db, current_user.email, body.filename)
    return QuizResponse(quiz=quiz)
