"""Letter model: the persisted output of one successful generation."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.core.database import Base


class Letter(Base):
    """A generated GST compliance letter.

    Exactly one row exists per debited credit; rows are never updated.
    """

    __tablename__ = "letters"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    # Generation inputs
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    compliance_type: Mapped[str] = mapped_column(String(100), nullable=False)
    period: Mapped[str] = mapped_column(String(100), nullable=False)
    due_date: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    consequence: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tone: Mapped[str] = mapped_column(String(20), nullable=False, default="Polite")
    language: Mapped[str] = mapped_column(String(30), nullable=False, default="English")

    # Output
    content: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=datetime.utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_letters_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Letter(id={self.id}, user={self.user_id}, type={self.compliance_type})>"
