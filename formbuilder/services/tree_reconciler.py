"""Reconciliation of a desired section/question/option tree onto storage.

Two paths:

* **Replace** - the form has no responses, so nothing references its
  structure. Options, questions and sections are deleted (in that order)
  and the tree is recreated from the payload.
* **Preserve** - responses exist. Every payload node is resolved to an
  existing row or a new one, existing rows are updated (and moved between
  sections) in place, new rows are created, and only then are stale rows
  pruned. Moves must be complete before pruning starts so a question that
  left an omitted section is not deleted along with it.

The reconciler never commits; the caller owns the transaction.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from formbuilder.models.answer import Answer
from formbuilder.models.database import generate_id
from formbuilder.models.option import Option
from formbuilder.models.question import Question
from formbuilder.models.section import Section
from formbuilder.schemas.form import QuestionPayload, SectionPayload
from formbuilder.services.excess_pruner import ExcessPruner
from formbuilder.services.identity_resolver import Existing, IdentityResolver
from formbuilder.services.type_change import TypeChangeValidator
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)

REPLACE_PATH = "replace"
PRESERVE_PATH = "preserve"


@dataclass
class ReconciliationResult:
    """What a reconciliation run did.

    Attributes:
        path: ``replace`` or ``preserve``
        referenced_section_ids / referenced_question_ids: Existing rows the
            payload named by id
        created_section_ids / created_question_ids: Rows created in this run
        moved_question_ids: Existing questions reassigned to another section
        skipped_question_ids: Existing questions whose edit was denied
        deleted_section_ids / deleted_question_ids: Rows removed by pruning
        warnings: Human-readable notes for the caller
    """
    path: str
    referenced_section_ids: Set[str] = field(default_factory=set)
    created_section_ids: Set[str] = field(default_factory=set)
    referenced_question_ids: Set[str] = field(default_factory=set)
    created_question_ids: Set[str] = field(default_factory=set)
    moved_question_ids: Set[str] = field(default_factory=set)
    skipped_question_ids: Set[str] = field(default_factory=set)
    deleted_section_ids: List[str] = field(default_factory=list)
    deleted_question_ids: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "sectionsCreated": len(self.created_section_ids),
            "sectionsUpdated": len(self.referenced_section_ids),
            "sectionsDeleted": len(self.deleted_section_ids),
            "questionsCreated": len(self.created_question_ids),
            "questionsUpdated": len(self.referenced_question_ids - self.skipped_question_ids),
            "questionsMoved": len(self.moved_question_ids),
            "questionsSkipped": len(self.skipped_question_ids),
            "questionsDeleted": len(self.deleted_question_ids),
        }


class TreeReconciler:
    """Apply a desired section tree to one form's stored structure."""

    def __init__(self, db: Session, form_id: str, temp_id_prefix: str = "temp_"):
        """Initialize reconciler.

        Args:
            db: SQLAlchemy session inside an open transaction
            form_id: Form whose structure is being rewritten
            temp_id_prefix: Prefix of client-side placeholder ids
        """
        self.db = db
        self.form_id = form_id
        self.temp_id_prefix = temp_id_prefix
        self.pruner = ExcessPruner(db)

    def reconcile(self, sections: List[SectionPayload], has_responses: bool) -> ReconciliationResult:
        """Reconcile the stored tree with ``sections``.

        Args:
            sections: Desired sections in display order
            has_responses: Whether the form has at least one response

        Returns:
            ReconciliationResult describing the changes
        """
        if not has_responses:
            return self._replace(sections)
        return self._preserve(sections)

    # Replace path

    def _replace(self, sections: List[SectionPayload]) -> ReconciliationResult:
        result = ReconciliationResult(path=REPLACE_PATH)
        logger.info(
            f"Form {self.form_id} has no responses; replacing structure",
            extra={"form_id": self.form_id}
        )

        self.pruner.wipe_structure(self.form_id)

        for index, section_payload in enumerate(sections):
            section = self._create_section(section_payload, index)
            result.created_section_ids.add(section.id)
            for q_index, question_payload in enumerate(section_payload.questions):
                question = self._create_question(question_payload, section.id, q_index)
                result.created_question_ids.add(question.id)

        self.db.flush()
        return result

    # Preserve path

    def _preserve(self, sections: List[SectionPayload]) -> ReconciliationResult:
        result = ReconciliationResult(path=PRESERVE_PATH)
        logger.info(
            f"Form {self.form_id} has responses; reconciling structure in place",
            extra={"form_id": self.form_id}
        )

        stored_sections = {
            section.id: section
            for section in self.db.execute(
                select(Section).where(Section.form_id == self.form_id)
            ).scalars()
        }
        stored_questions = {
            question.id: question
            for question in self.db.execute(
                select(Question)
                .join(Section, Question.section_id == Section.id)
                .where(Section.form_id == self.form_id)
            ).scalars()
        }
        answered_ids = self._answered_question_ids(stored_questions.keys())

        section_resolver = IdentityResolver(stored_sections.keys(), self.temp_id_prefix)
        question_resolver = IdentityResolver(stored_questions.keys(), self.temp_id_prefix)

        for index, section_payload in enumerate(sections):
            identity = section_resolver.resolve(section_payload.id)
            if isinstance(identity, Existing):
                section = stored_sections[identity.id]
                section.title = section_payload.title or "Untitled Section"
                section.description = section_payload.description or None
                section.order = index
                result.referenced_section_ids.add(section.id)
            else:
                if identity.unrecognized_id:
                    self._warn_unrecognized(result, "section", identity.unrecognized_id)
                section = self._create_section(section_payload, index)
                result.created_section_ids.add(section.id)

            for q_index, question_payload in enumerate(section_payload.questions):
                q_identity = question_resolver.resolve(question_payload.id)
                if isinstance(q_identity, Existing):
                    self._update_question(
                        stored_questions[q_identity.id],
                        question_payload,
                        section.id,
                        q_index,
                        q_identity.id in answered_ids,
                        result,
                    )
                    result.referenced_question_ids.add(q_identity.id)
                else:
                    if q_identity.unrecognized_id:
                        self._warn_unrecognized(result, "question", q_identity.unrecognized_id)
                    question = self._create_question(question_payload, section.id, q_index)
                    result.created_question_ids.add(question.id)

        # All moves are flushed before anything is considered stale.
        self.db.flush()

        question_plan = self.pruner.prune_questions(
            self.form_id,
            result.referenced_question_ids,
            result.created_question_ids,
        )
        result.deleted_question_ids = question_plan.to_delete

        section_plan = self.pruner.prune_sections(
            self.form_id,
            result.referenced_section_ids,
            result.created_section_ids,
        )
        result.deleted_section_ids = section_plan.to_delete

        self.db.flush()
        return result

    def _update_question(
        self,
        question: Question,
        payload: QuestionPayload,
        section_id: str,
        order: int,
        has_answers: bool,
        result: ReconciliationResult,
    ) -> None:
        """Update, move and re-option an existing question.

        Placement (section and order) always follows the payload. Field and
        option changes are skipped when the type change is unsafe.
        """
        if question.section_id != section_id:
            logger.debug(f"Moving question {question.id} from {question.section_id} to {section_id}")
            question.section_id = section_id
            result.moved_question_ids.add(question.id)
        question.order = order

        decision = TypeChangeValidator.evaluate(question.type, payload.type, has_answers)
        if not decision.allowed:
            message = f"Question {question.id} was not updated: {decision.reason}"
            logger.warning(message, extra={"form_id": self.form_id})
            result.warnings.append(message)
            result.skipped_question_ids.add(question.id)
            return

        question.text = payload.text
        question.description = payload.description or None
        question.type = payload.type
        question.required = payload.required
        question.image_url = payload.image_url or None
        question.points = payload.points
        question.correct_answers = list(payload.correct_answers)
        question.shuffle_options_order = payload.shuffle_options_order

        self.db.execute(delete(Option).where(Option.question_id == question.id))
        self._add_options(question.id, payload)

    def _create_section(self, payload: SectionPayload, index: int) -> Section:
        section = Section(
            id=generate_id(),
            form_id=self.form_id,
            title=payload.title or f"Section {index + 1}",
            description=payload.description or None,
            order=index,
        )
        self.db.add(section)
        return section

    def _create_question(self, payload: QuestionPayload, section_id: str, order: int) -> Question:
        question = Question(
            id=generate_id(),
            section_id=section_id,
            text=payload.text,
            description=payload.description or None,
            type=payload.type,
            required=payload.required,
            image_url=payload.image_url or None,
            order=order,
            points=payload.points,
            correct_answers=list(payload.correct_answers),
            shuffle_options_order=payload.shuffle_options_order,
        )
        self.db.add(question)
        self._add_options(question.id, payload)
        return question

    def _add_options(self, question_id: str, payload: QuestionPayload) -> None:
        for position, option in enumerate(payload.persistable_options()):
            self.db.add(Option(
                id=generate_id(),
                question_id=question_id,
                text=option.text,
                image_url=option.image_url or None,
                position=position,
            ))

    def _answered_question_ids(self, question_ids) -> Set[str]:
        question_ids = list(question_ids)
        if not question_ids:
            return set()
        return set(self.db.execute(
            select(Answer.question_id)
            .where(Answer.question_id.in_(question_ids))
            .distinct()
        ).scalars())

    def _warn_unrecognized(self, result: ReconciliationResult, level: str, entity_id: str) -> None:
        message = f"Unknown {level} id {entity_id} does not belong to this form; created as new"
        logger.warning(message, extra={"form_id": self.form_id})
        result.warnings.append(message)
