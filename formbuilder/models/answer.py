"""Answer model for one question's value inside a response."""

from typing import Optional, Union

from sqlalchemy import JSON, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formbuilder.models.database import Base, generate_id
from formbuilder.schemas.answer import MultiSelectAnswer, TextAnswer


class Answer(Base):
    """Model for a single answer.

    ``question_id`` is a lookup-only reference: the question does not own
    its answers and there is no ORM relationship from Question to Answer.
    The reconciliation engine deletes answers explicitly before removing a
    question; ``ON DELETE CASCADE`` keeps the store consistent if anything
    else removes a question row.

    Attributes:
        id: Primary key
        response_id: Owning response
        question_id: Answered question
        answer_text: Free-text value (or comma-joined selection)
        selected_options: Selected option texts; NULL for free-text answers,
            so an empty selection still reads back as a multi-select
    """

    __tablename__ = "answers"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)

    response_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("responses.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to responses table"
    )
    question_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        comment="Answered question (lookup only)"
    )

    answer_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    selected_options: Mapped[Optional[list]] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
    )

    response: Mapped["FormResponse"] = relationship("FormResponse", back_populates="answers")

    __table_args__ = (
        Index("idx_answers_question", "question_id"),
        Index("idx_answers_response", "response_id"),
    )

    @classmethod
    def from_value(
        cls,
        response_id: str,
        question_id: str,
        value: Union[TextAnswer, MultiSelectAnswer],
    ) -> "Answer":
        """Build an answer row from a validated answer value.

        Multi-select answers also store a comma-joined text copy so text
        exports read naturally.
        """
        if isinstance(value, MultiSelectAnswer):
            return cls(
                response_id=response_id,
                question_id=question_id,
                answer_text=value.display_text,
                selected_options=list(value.selected),
            )
        return cls(
            response_id=response_id,
            question_id=question_id,
            answer_text=value.text,
            selected_options=None,
        )

    @property
    def value(self) -> Union[TextAnswer, MultiSelectAnswer]:
        if self.selected_options is not None:
            return MultiSelectAnswer(selected=list(self.selected_options))
        return TextAnswer(text=self.answer_text or "")

    def __repr__(self) -> str:
        return (
            f"<Answer(id={self.id}, "
            f"response_id={self.response_id}, "
            f"question_id={self.question_id})>"
        )
