"""Form model: the root of the authored structure.

A form owns an ordered list of sections and carries the display and quiz
settings that the authoring UI edits alongside the structure.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formbuilder.models.database import Base, generate_id
from formbuilder.schemas.form import DEFAULT_CONFIRMATION_MESSAGE


class Form(Base):
    """Model for an authored form.

    Attributes:
        id: Primary key
        owner_id: Id of the user who created the form
        title: Form title
        description: Optional form description
        published: Whether the form is visible to respondents
        accepting_responses: Whether new submissions are accepted
        shuffle_questions .. edit_time_limit: Display, quiz and editing settings
        created_at: Creation timestamp
        updated_at: Last update timestamp
        sections: Owned sections ordered by ``order``
    """

    __tablename__ = "forms"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)

    owner_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Id of the authenticated user who owns the form"
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Publication state
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    accepting_responses: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Display settings
    shuffle_questions: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    collect_email: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allow_multiple_responses: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    show_progress: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    confirmation_message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_CONFIRMATION_MESSAGE
    )
    default_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Quiz settings
    is_quiz: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    show_correct_answers: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    release_grades: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Respondent self-edit settings (consumed by the edit-token subsystem)
    allow_response_editing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    edit_time_limit: Mapped[str] = mapped_column(String(16), nullable=False, default="24h")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sections: Mapped[List["Section"]] = relationship(
        "Section",
        back_populates="form",
        order_by="Section.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_forms_owner", "owner_id"),
    )

    def apply_settings(self, settings) -> None:
        """Copy a validated ``FormSettings`` payload onto the row.

        Response editing is always off for quizzes so a graded attempt cannot
        be rewritten after the fact.
        """
        self.shuffle_questions = settings.shuffle_questions
        self.collect_email = settings.collect_email
        self.allow_multiple_responses = settings.allow_multiple_responses
        self.show_progress = settings.show_progress
        self.confirmation_message = settings.confirmation_message
        self.default_required = settings.default_required
        self.is_quiz = settings.is_quiz
        self.show_correct_answers = settings.show_correct_answers
        self.release_grades = settings.release_grades
        self.allow_response_editing = False if settings.is_quiz else settings.allow_response_editing
        self.edit_time_limit = settings.edit_time_limit

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_id == user_id

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"<Form(id={self.id}, "
            f"owner_id={self.owner_id}, "
            f"title={self.title!r}, "
            f"published={self.published})>"
        )
