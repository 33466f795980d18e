"""Section model: an ordered page of questions inside a form."""

from typing import List, Optional

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formbuilder.models.database import Base, generate_id


class Section(Base):
    """Model for a form section.

    Sections are deleted with their form (CASCADE). ``order`` is a dense
    0-based index among the form's sections.

    Attributes:
        id: Primary key
        form_id: Owning form
        title: Section title
        description: Optional section description
        order: Position among sibling sections
        questions: Owned questions ordered by ``order``
    """

    __tablename__ = "sections"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_id)

    form_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False,
        comment="Foreign key to forms table"
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    form: Mapped["Form"] = relationship("Form", back_populates="sections")

    questions: Mapped[List["Question"]] = relationship(
        "Question",
        back_populates="section",
        order_by="Question.order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_sections_form_order", "form_id", "order"),
    )

    def __repr__(self) -> str:
        return f"<Section(id={self.id}, form_id={self.form_id}, order={self.order})>"
