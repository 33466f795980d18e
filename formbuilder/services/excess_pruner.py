"""Excess pruning of stale structural rows.

After the reconciler has upserted and moved every node named by the payload,
rows that the payload no longer mentions are removed. Deletion is bounded by
the computed excess (stored rows minus rows the payload accounts for), and
always runs in foreign-key dependency order so no answer is left pointing at
a deleted question:

    question: answers -> options -> question
    section:  answers -> options -> questions -> section
"""

from dataclasses import dataclass, field
from typing import Collection, Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from formbuilder.models.answer import Answer
from formbuilder.models.option import Option
from formbuilder.models.question import Question
from formbuilder.models.response import FormResponse
from formbuilder.models.section import Section
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class PrunePlan:
    """Deletion plan for one entity level.

    Attributes:
        expected: Rows the payload accounts for (referenced + newly created)
        actual: Rows stored under the form
        excess: ``max(0, actual - expected)``
        candidates: Stored rows not referenced and not just created, ascending
        to_delete: The first ``excess`` candidates
    """
    expected: int
    actual: int
    excess: int
    candidates: List[str] = field(default_factory=list)
    to_delete: List[str] = field(default_factory=list)

    @property
    def truncated(self) -> bool:
        """True when the excess bound kept some candidates alive."""
        return len(self.to_delete) < len(self.candidates)


def plan_prune(
    referenced_ids: Collection[str],
    created_ids: Collection[str],
    stored_ids: Collection[str],
) -> PrunePlan:
    """Compute which stored rows to delete.

    Args:
        referenced_ids: Persisted ids the payload named explicitly
        created_ids: Ids of rows created during this reconciliation
        stored_ids: All ids currently stored for the level under the form

    Returns:
        PrunePlan
    """
    referenced = set(referenced_ids)
    created = set(created_ids)
    stored = set(stored_ids)

    expected = len(referenced) + len(created)
    actual = len(stored)
    excess = max(0, actual - expected)

    candidates = sorted(stored - referenced - created)
    return PrunePlan(
        expected=expected,
        actual=actual,
        excess=excess,
        candidates=candidates,
        to_delete=candidates[:excess],
    )


class ExcessPruner:
    """Delete unreferenced questions and sections of a form."""

    def __init__(self, db: Session):
        """Initialize pruner.

        Args:
            db: SQLAlchemy session (the caller owns the transaction)
        """
        self.db = db

    def stored_section_ids(self, form_id: str) -> List[str]:
        return list(self.db.execute(
            select(Section.id).where(Section.form_id == form_id)
        ).scalars())

    def stored_question_ids(self, form_id: str) -> List[str]:
        return list(self.db.execute(
            select(Question.id)
            .join(Section, Question.section_id == Section.id)
            .where(Section.form_id == form_id)
        ).scalars())

    def prune_questions(
        self,
        form_id: str,
        referenced_ids: Collection[str],
        created_ids: Collection[str],
    ) -> PrunePlan:
        """Remove questions of the form that the payload no longer contains.

        Must run after every referenced question has been moved to its final
        section, otherwise a moved question would look orphaned.

        Returns:
            The executed PrunePlan
        """
        self.db.flush()
        plan = plan_prune(referenced_ids, created_ids, self.stored_question_ids(form_id))
        self._log_plan("question", form_id, plan)
        self.delete_questions(plan.to_delete)
        return plan

    def prune_sections(
        self,
        form_id: str,
        referenced_ids: Collection[str],
        created_ids: Collection[str],
    ) -> PrunePlan:
        """Remove sections of the form that the payload no longer contains.

        Returns:
            The executed PrunePlan
        """
        self.db.flush()
        plan = plan_prune(referenced_ids, created_ids, self.stored_section_ids(form_id))
        self._log_plan("section", form_id, plan)
        self.delete_sections(plan.to_delete)
        return plan

    def delete_questions(self, question_ids: Iterable[str]) -> None:
        """Delete questions with their answers and options, in FK order."""
        question_ids = list(question_ids)
        if not question_ids:
            return

        self.db.execute(delete(Answer).where(Answer.question_id.in_(question_ids)))
        self.db.execute(delete(Option).where(Option.question_id.in_(question_ids)))
        self.db.execute(delete(Question).where(Question.id.in_(question_ids)))
        logger.debug(f"Deleted questions {question_ids}")

    def delete_sections(self, section_ids: Iterable[str]) -> None:
        """Delete sections with every question, option and answer beneath them."""
        section_ids = list(section_ids)
        if not section_ids:
            return

        question_ids = list(self.db.execute(
            select(Question.id).where(Question.section_id.in_(section_ids))
        ).scalars())
        self.delete_questions(question_ids)
        self.db.execute(delete(Section).where(Section.id.in_(section_ids)))
        logger.debug(f"Deleted sections {section_ids}")

    def wipe_structure(self, form_id: str) -> None:
        """Delete every option, question and section of a form.

        Only valid while the form has no responses: answers are not touched.
        """
        section_ids = select(Section.id).where(Section.form_id == form_id)
        question_ids = select(Question.id).where(Question.section_id.in_(section_ids))

        self.db.execute(
            delete(Option).where(Option.question_id.in_(question_ids)),
            execution_options={"synchronize_session": "fetch"},
        )
        self.db.execute(
            delete(Question).where(Question.section_id.in_(section_ids)),
            execution_options={"synchronize_session": "fetch"},
        )
        self.db.execute(delete(Section).where(Section.form_id == form_id))

    def delete_responses(self, form_id: str) -> None:
        """Delete every response of a form together with its answers."""
        response_ids = select(FormResponse.id).where(FormResponse.form_id == form_id)
        self.db.execute(
            delete(Answer).where(Answer.response_id.in_(response_ids)),
            execution_options={"synchronize_session": "fetch"},
        )
        self.db.execute(delete(FormResponse).where(FormResponse.form_id == form_id))

    @staticmethod
    def _log_plan(level: str, form_id: str, plan: PrunePlan) -> None:
        if plan.truncated:
            logger.warning(
                f"Excess bound kept {len(plan.candidates) - len(plan.to_delete)} "
                f"unreferenced {level}(s) alive on form {form_id}",
                extra={"form_id": form_id}
            )
        if plan.to_delete:
            logger.info(
                f"Pruning {len(plan.to_delete)} {level}(s) from form {form_id} "
                f"(stored={plan.actual}, expected={plan.expected})",
                extra={"form_id": form_id}
            )
