from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base


class ChatHistory(Base):
    """Append-only question/answer log for one document and owner."""

    __tablename__ = "chat_histories"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(
        String(255),
        ForeignKey("documents.filename", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    owner_email = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    document = relationship("Document", back_populates="chat_history")
    messages = relationship(
        "ChatMessage",
        back_populates="history",
        order_by="ChatMessage.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_chat_histories_owner_file", "filename", "owner_email"),
    )


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    history_id = Column(
        Integer,
        ForeignKey("chat_histories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    history = relationship("ChatHistory", back_populates="messages")
