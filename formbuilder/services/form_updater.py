"""Form update coordinator.

Runs a full "update form" request as one database transaction: form-level
fields and settings first, then structure reconciliation and pruning. Any
failure rolls everything back, so readers never observe a half-applied
structure. Retrying the same payload is safe.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from formbuilder.config import get_settings
from formbuilder.models.form import Form
from formbuilder.models.response import FormResponse
from formbuilder.models.section import Section
from formbuilder.schemas.form import FormUpdateRequest
from formbuilder.services.tree_reconciler import ReconciliationResult, TreeReconciler
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)


class FormUpdateError(Exception):
    """Raised when a form update could not be committed.

    Attributes:
        details: Underlying error message, for diagnostics
    """

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.details = details


@dataclass
class FormUpdateOutcome:
    """Result of a committed form update."""
    form: Form
    result: ReconciliationResult

    @property
    def warnings(self) -> List[str]:
        return self.result.warnings


class FormUpdater:
    """Apply an update-form request atomically."""

    def __init__(self, db: Session, temp_id_prefix: Optional[str] = None):
        """Initialize updater.

        Args:
            db: SQLAlchemy database session
            temp_id_prefix: Placeholder-id prefix (defaults to settings)
        """
        self.db = db
        self.temp_id_prefix = temp_id_prefix or get_settings().temp_id_prefix

    def update(self, form: Form, request: FormUpdateRequest) -> FormUpdateOutcome:
        """Apply ``request`` to ``form`` and commit.

        Steps, all inside one transaction:
        1. Count responses to pick the replace or preserve path
        2. Update title, description, published, accepting-responses, settings
        3. Reconcile sections, questions and options
        4. Prune stale questions and sections (preserve path)

        Args:
            form: Form loaded in this session (ownership already checked)
            request: Validated update request

        Returns:
            FormUpdateOutcome with the committed form and change summary

        Raises:
            FormUpdateError: If anything fails; the transaction is rolled back
        """
        form_id = form.id
        try:
            has_responses = FormResponse.form_has_responses(self.db, form_id)

            self._apply_form_fields(form, request)

            legacy_section_id = None
            if request.uses_legacy_questions and has_responses:
                legacy_section_id = self._first_section_id(form_id)

            reconciler = TreeReconciler(self.db, form_id, self.temp_id_prefix)
            result = reconciler.reconcile(
                request.desired_sections(legacy_section_id=legacy_section_id),
                has_responses,
            )

            self.db.commit()

        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Form update failed for {form_id}: {e}",
                exc_info=True,
                extra={"form_id": form_id}
            )
            raise FormUpdateError("Failed to update form", details=str(e)) from e

        logger.info(
            f"Updated form {form_id} via {result.path} path: {result.summary}",
            extra={"form_id": form_id}
        )
        return FormUpdateOutcome(form=form, result=result)

    @staticmethod
    def _apply_form_fields(form: Form, request: FormUpdateRequest) -> None:
        form.title = request.title
        form.description = request.description
        form.published = request.published
        form.accepting_responses = request.accepting_responses
        if request.settings is not None:
            form.apply_settings(request.settings)

    def _first_section_id(self, form_id: str) -> Optional[str]:
        """Id of the form's first section, adopted by legacy flat payloads."""
        return self.db.execute(
            select(Section.id)
            .where(Section.form_id == form_id)
            .order_by(Section.order, Section.id)
            .limit(1)
        ).scalar_one_or_none()
