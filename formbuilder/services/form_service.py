"""Form authoring operations outside the full-tree update.

Creating, listing, loading, renaming, publishing and deleting forms, plus
the single-section edits the builder performs between full saves.
"""

from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from formbuilder.config import get_settings
from formbuilder.models.form import Form
from formbuilder.models.question import Question
from formbuilder.models.response import FormResponse
from formbuilder.models.section import Section
from formbuilder.schemas.form import (
    FormCreateRequest,
    FormListItem,
    FormSearchItem,
    FormSettings,
    SectionPayload,
)
from formbuilder.services.excess_pruner import ExcessPruner
from formbuilder.services.tree_reconciler import TreeReconciler
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)

SEARCH_MIN_QUERY_LENGTH = 2
SEARCH_RESULT_LIMIT = 8


class SectionNotFoundError(Exception):
    """Raised when a section does not exist or is not owned by the caller."""
    pass


class SectionOperationError(Exception):
    """Raised when a section edit would break the form's structure."""
    pass


class FormService:
    """Authoring operations on a user's forms.

    Every mutating method commits on success and rolls back before
    re-raising on failure.
    """

    def __init__(self, db: Session):
        """Initialize form service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db
        self.pruner = ExcessPruner(db)

    def create_form(self, owner_id: str, request: FormCreateRequest) -> Form:
        """Create a form with its initial structure.

        Sections are preferred; a flat legacy question list is wrapped into
        "Section 1"; with neither, one empty "Section 1" is created.

        Args:
            owner_id: Authenticated user creating the form
            request: Validated create request

        Returns:
            Form: The committed form
        """
        try:
            form = Form(
                owner_id=owner_id,
                title=request.title,
                description=request.description,
                published=request.published,
            )
            form.apply_settings(request.settings or FormSettings())
            self.db.add(form)
            self.db.flush()

            sections = request.desired_sections() or [SectionPayload(title="Section 1")]
            TreeReconciler(self.db, form.id, get_settings().temp_id_prefix).reconcile(
                sections, has_responses=False
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Created form {form.id} for user {owner_id}", extra={"form_id": form.id})
        return form

    def list_forms(self, owner_id: str) -> List[FormListItem]:
        """List a user's forms, newest first, with response counts."""
        response_counts = (
            select(FormResponse.form_id, func.count(FormResponse.id).label("response_count"))
            .group_by(FormResponse.form_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Form, func.coalesce(response_counts.c.response_count, 0))
            .outerjoin(response_counts, response_counts.c.form_id == Form.id)
            .where(Form.owner_id == owner_id)
            .order_by(Form.created_at.desc(), Form.id)
        ).all()

        return [
            FormListItem(
                id=form.id,
                title=form.title,
                description=form.description,
                published=form.published,
                accepting_responses=form.accepting_responses,
                response_count=count,
                created_at=form.created_at,
            )
            for form, count in rows
        ]

    def search_forms(self, owner_id: str, query: Optional[str]) -> List[FormSearchItem]:
        """Find the caller's forms whose title contains ``query``.

        Matching ignores case. Queries shorter than two characters after
        trimming return nothing. Published forms come first, then newest.
        """
        term = (query or "").strip()
        if len(term) < SEARCH_MIN_QUERY_LENGTH:
            return []

        escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        forms = self.db.execute(
            select(Form)
            .where(Form.owner_id == owner_id)
            .where(Form.title.ilike(f"%{escaped}%", escape="\\"))
            .order_by(Form.published.desc(), Form.created_at.desc(), Form.id)
            .limit(SEARCH_RESULT_LIMIT)
        ).scalars().all()

        logger.debug(f"Search for {term!r} by {owner_id} matched {len(forms)} forms")
        return [FormSearchItem.model_validate(form) for form in forms]

    def load_tree(self, form_id: str) -> Optional[Form]:
        """Load a form with sections, questions and options fully refreshed.

        ``populate_existing`` overwrites any stale collections left in the
        identity map by bulk deletes earlier in the session.
        """
        return self.db.execute(
            select(Form)
            .where(Form.id == form_id)
            .options(
                selectinload(Form.sections)
                .selectinload(Section.questions)
                .selectinload(Question.options)
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def update_settings(self, form: Form, settings: FormSettings) -> Form:
        form.apply_settings(settings)
        self._commit(f"Updated settings of form {form.id}")
        return form

    def set_published(self, form: Form, published: bool) -> Form:
        form.published = published
        self._commit(f"Set published={published} on form {form.id}")
        return form

    def set_accepting_responses(self, form: Form, accepting: bool) -> Form:
        form.accepting_responses = accepting
        self._commit(f"Set accepting_responses={accepting} on form {form.id}")
        return form

    def rename(self, form: Form, title: str) -> Form:
        form.title = title
        self._commit(f"Renamed form {form.id}")
        return form

    def delete_form(self, form: Form) -> None:
        """Delete a form, its responses and its entire structure.

        Rows go in dependency order: answers and responses, then options,
        questions and sections, then the form.
        """
        form_id = form.id
        try:
            self.pruner.delete_responses(form_id)
            self.pruner.wipe_structure(form_id)
            self.db.execute(delete(Form).where(Form.id == form_id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted form {form_id}", extra={"form_id": form_id})

    # Sections

    def get_owned_section(self, section_id: str, owner_id: str) -> Section:
        """Load a section whose form belongs to ``owner_id``.

        Raises:
            SectionNotFoundError: If missing or owned by someone else
        """
        section = self.db.execute(
            select(Section)
            .join(Form, Section.form_id == Form.id)
            .where(Section.id == section_id, Form.owner_id == owner_id)
        ).scalar_one_or_none()
        if section is None:
            raise SectionNotFoundError(f"Section not found: {section_id}")
        return section

    def add_section(self, form: Form, title: str = "", description: str = "") -> Section:
        """Append an empty section after the form's last section."""
        next_order = self.db.execute(
            select(func.count(Section.id)).where(Section.form_id == form.id)
        ).scalar_one()
        section = Section(
            form_id=form.id,
            title=title,
            description=description or None,
            order=next_order,
        )
        self.db.add(section)
        self._commit(f"Added section at position {next_order} to form {form.id}")
        return section

    def update_section(
        self,
        section: Section,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Section:
        """Update only the provided section fields."""
        if title is not None:
            section.title = title
        if description is not None:
            section.description = description
        self._commit(f"Updated section {section.id}")
        return section

    def delete_section(self, section: Section) -> None:
        """Delete a section with its questions and their answers.

        The remaining sections are renumbered so their order stays dense.

        Raises:
            SectionOperationError: If it is the form's only section
        """
        form_id = section.form_id
        section_count = self.db.execute(
            select(func.count(Section.id)).where(Section.form_id == form_id)
        ).scalar_one()
        if section_count <= 1:
            raise SectionOperationError(
                "Cannot delete the last section. A form must have at least one section."
            )

        try:
            self.pruner.delete_sections([section.id])
            remaining = self.db.execute(
                select(Section).where(Section.form_id == form_id).order_by(Section.order, Section.id)
            ).scalars().all()
            for index, remaining_section in enumerate(remaining):
                remaining_section.order = index
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted section from form {form_id}", extra={"form_id": form_id})

    def reorder_sections(self, form: Form, section_ids: List[str]) -> None:
        """Set section order to the position of each id in ``section_ids``.

        Raises:
            SectionOperationError: Unless ``section_ids`` is exactly the
                form's set of section ids
        """
        sections = {
            section.id: section
            for section in self.db.execute(
                select(Section).where(Section.form_id == form.id)
            ).scalars()
        }
        if len(section_ids) != len(sections) or set(section_ids) != set(sections):
            raise SectionOperationError("Invalid section order provided")

        for index, section_id in enumerate(section_ids):
            sections[section_id].order = index
        self._commit(f"Reordered sections of form {form.id}")

    def _commit(self, message: str) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(message)
