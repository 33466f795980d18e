"""FormResponse model for a single respondent submission.

Responses are created by the submission flow. The authoring side only ever
counts them, to decide whether a structural edit must preserve history.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from formbuilder.models.database import Base, generate_id


class FormResponse(Base):
    """Model for a submitted response.

    Attributes:
        id: Primary key
        form_id: Form the response was submitted to
        email: Respondent email when the form collects it
        created_at: Submission time
        answers: Per-question answers
    """

    __tablename__ = "responses"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)

    form_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to forms table"
    )

    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the response was submitted"
    )

    answers: Mapped[List["Answer"]] = relationship(
        "Answer",
        back_populates="response",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_responses_form", "form_id"),
    )

    @classmethod
    def count_for_form(cls, db: Session, form_id: str) -> int:
        """Return how many responses a form has collected.

        Args:
            db: Database session
            form_id: Form to count responses for

        Returns:
            int: Number of response rows
        """
        return db.execute(
            select(func.count(cls.id)).where(cls.form_id == form_id)
        ).scalar_one()

    @classmethod
    def form_has_responses(cls, db: Session, form_id: str) -> bool:
        """Check whether at least one response exists for the form."""
        return db.execute(
            select(cls.id).where(cls.form_id == form_id).limit(1)
        ).first() is not None

    def __repr__(self) -> str:
        return f"<FormResponse(id={self.id}, form_id={self.form_id})>"
