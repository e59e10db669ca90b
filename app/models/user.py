from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Ownership set: every document uploaded by this user
    documents = relationship(
        "Document",
        back_populates="owner",
        order_by="Document.id",
    )

    @property
    def document_ids(self) -> list[str]:
        return [d.filename for d in self.documents]
