"""Option model: a selectable choice of an option-backed question."""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formbuilder.models.database import Base, generate_id


class Option(Base):
    """Model for a question option.

    Options are always replaced wholesale when their question is edited, so
    they carry no identity that answers depend on; answers store the selected
    option texts instead.

    Attributes:
        id: Primary key
        question_id: Owning question
        text: Option label
        image_url: Optional option image
        position: Index in the payload the option was created from
    """

    __tablename__ = "options"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)

    question_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to questions table"
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    question: Mapped["Question"] = relationship("Question", back_populates="options")

    def __repr__(self) -> str:
        return f"<Option(id={self.id}, question_id={self.question_id}, text={self.text!r})>"
