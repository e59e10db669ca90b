from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    owner_email = Column(
        String(255),
        ForeignKey("users.email", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Generated storage filename; the external reference to this document
    filename = Column(String(255), unique=True, index=True, nullable=False)
    original_name = Column(String(255), nullable=False)
    text = Column(Text, nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="documents")
    chat_history = relationship(
        "ChatHistory",
        back_populates="document",
        uselist=False,
        cascade="all, delete-orphan",
    )
