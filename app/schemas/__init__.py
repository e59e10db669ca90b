from app.schemas.auth import RegisterRequest, RegisterResponse, LoginRequest, LoginResponse
from app.schemas.document import DocumentItem, DocumentListResponse, UploadResponse, DocumentRequest
from app.schemas.study import ChatRequest, ChatResponse, ChatMessage, QuizQuestion

__all__ = [
    "RegisterRequest", "RegisterResponse", "LoginRequest", "LoginResponse",
    "DocumentItem", "DocumentListResponse", "UploadResponse", "DocumentRequest",
    "ChatRequest", "ChatResponse", "ChatMessage", "QuizQuestion",
]
