"""Question model: a single prompt inside a section."""

from typing import List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text as sa_text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formbuilder.models.database import Base, generate_id
from formbuilder.schemas.form import QuestionType


class Question(Base):
    """Model for a form question.

    A question belongs to exactly one section; moving it between sections is
    a reassignment of ``section_id``. Answers reference questions by id only
    and are removed explicitly before the question row (see
    ``formbuilder.services.excess_pruner``); the FK cascade is a backstop.

    Attributes:
        id: Primary key
        section_id: Owning section
        text: Question prompt
        description: Optional help text
        type: Answer type
        required: Whether respondents must answer
        image_url: Optional illustration
        order: Position among the section's questions
        points: Quiz points awarded for a correct answer
        correct_answers: Quiz answer key (option texts or accepted strings)
        shuffle_options_order: Shuffle options when rendering
        options: Owned options
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)

    section_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("sections.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to sections table"
    )

    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[QuestionType] = mapped_column(
        Enum(QuestionType, native_enum=False, length=32),
        nullable=False,
        default=QuestionType.SHORT_ANSWER,
    )
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Quiz fields
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    correct_answers: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        server_default=sa_text("'[]'"),
    )

    shuffle_options_order: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    section: Mapped["Section"] = relationship("Section", back_populates="questions")

    options: Mapped[List["Option"]] = relationship(
        "Option",
        back_populates="question",
        order_by="Option.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_questions_section_order", "section_id", "order"),
    )

    @property
    def is_option_backed(self) -> bool:
        return self.type.is_option_backed

    def __repr__(self) -> str:
        return (
            f"<Question(id={self.id}, "
            f"section_id={self.section_id}, "
            f"type={self.type.value if self.type else None}, "
            f"text={self.text[:30]!r})>"
        )
