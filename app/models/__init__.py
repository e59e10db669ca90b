from app.models.user import User
from app.models.document import Document
from app.models.chat_history import ChatHistory, ChatMessage

__all__ = [
    "User",
    "Document",
    "ChatHistory",
    "ChatMessage",
]
