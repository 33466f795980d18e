"""Form authoring endpoints.

All endpoints require an authenticated user and, except for create, list
and search, ownership of the target form. Responses use the envelope
``{"success": bool, "message" | "error": str, ...}``.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from formbuilder.middleware.auth import get_current_user_id, get_owned_form
from formbuilder.models.database import get_db
from formbuilder.models.form import Form
from formbuilder.schemas.form import (
    FormCreateRequest,
    FormOut,
    FormSettings,
    FormUpdateRequest,
    PublishRequest,
    RenameRequest,
    SectionCreateRequest,
    SectionReorderRequest,
    ToggleResponsesRequest,
)
from formbuilder.services.form_service import FormService, SectionOperationError
from formbuilder.services.form_updater import FormUpdateError, FormUpdater
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/forms")


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    """Build the failure envelope."""
    content = {"success": False, "error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def settings_view(form: Form) -> dict:
    return FormSettings(
        shuffle_questions=form.shuffle_questions,
        collect_email=form.collect_email,
        allow_multiple_responses=form.allow_multiple_responses,
        show_progress=form.show_progress,
        confirmation_message=form.confirmation_message,
        default_required=form.default_required,
        is_quiz=form.is_quiz,
        show_correct_answers=form.show_correct_answers,
        release_grades=form.release_grades,
        allow_response_editing=form.allow_response_editing,
        edit_time_limit=form.edit_time_limit,
    ).model_dump(by_alias=True)


@router.post("")
async def create_form(
    payload: FormCreateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict:
    """Create a form with its initial sections and questions."""
    form = FormService(db).create_form(user_id, payload)
    return {
        "success": True,
        "message": "Form saved successfully!",
        "formId": form.id,
    }


@router.get("")
async def list_forms(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict:
    """List the caller's forms."""
    forms = FormService(db).list_forms(user_id)
    return {
        "success": True,
        "forms": [item.to_json() for item in forms],
    }


@router.get("/search")
async def search_forms(
    q: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> dict:
    """Title suggestions among the caller's forms."""
    forms = FormService(db).search_forms(user_id, q)
    return {
        "success": True,
        "forms": [item.to_json() for item in forms],
    }


@router.get("/{form_id}")
async def get_form(
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    """Return the full authored tree of an owned form."""
    tree = FormService(db).load_tree(form.id)
    return {"success": True, "form": FormOut.model_validate(tree).to_json()}


@router.put("/{form_id}")
async def update_form(
    payload: FormUpdateRequest,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
):
    """Apply a full desired form tree to an owned form.

    Flow:
    1. Authenticate and check ownership (dependencies)
    2. Validate the payload (400 before any transaction)
    3. Reconcile structure atomically
    4. Return warnings for question edits that were skipped

    Returns:
        Success envelope, or a 500 envelope with diagnostic details
    """
    logger.info(
        f"Update requested for form {form.id}: "
        f"{len(payload.sections or [])} section(s), "
        f"{len(payload.questions or [])} legacy question(s)",
        extra={"form_id": form.id}
    )

    try:
        outcome = FormUpdater(db).update(form, payload)
    except FormUpdateError as e:
        return error_response(500, "Internal server error", details=e.details)

    return {
        "success": True,
        "message": "Form updated successfully",
        "warnings": outcome.warnings,
        "changes": outcome.result.summary,
    }


@router.patch("/{form_id}/settings")
async def update_settings(
    payload: FormSettings,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    """Replace the display, quiz and editing settings of a form."""
    form = FormService(db).update_settings(form, payload)
    return {
        "success": True,
        "message": "Settings updated successfully",
        "settings": settings_view(form),
    }


@router.patch("/{form_id}/publish")
async def publish_form(
    payload: PublishRequest,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    form = FormService(db).set_published(form, payload.published)
    return {"success": True, "id": form.id, "published": form.published}


@router.patch("/{form_id}/toggle-responses")
async def toggle_responses(
    payload: ToggleResponsesRequest,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    form = FormService(db).set_accepting_responses(form, payload.accepting_responses)
    return {
        "success": True,
        "message": (
            "Form is now accepting responses"
            if form.accepting_responses
            else "Form is no longer accepting responses"
        ),
        "acceptingResponses": form.accepting_responses,
    }


@router.patch("/{form_id}/rename")
async def rename_form(
    payload: RenameRequest,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    form = FormService(db).rename(form, payload.title)
    return {"success": True, "message": "Form renamed successfully", "title": form.title}


@router.delete("/{form_id}")
async def delete_form(
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    """Delete a form with its structure and collected responses."""
    FormService(db).delete_form(form)
    return {"success": True, "message": "Form deleted successfully"}


@router.post("/{form_id}/sections")
async def add_section(
    payload: SectionCreateRequest,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
) -> dict:
    """Append an empty section to a form."""
    section = FormService(db).add_section(form, payload.title, payload.description)
    return {
        "success": True,
        "message": "Section added successfully!",
        "section": {
            "id": section.id,
            "title": section.title,
            "description": section.description,
            "order": section.order,
            "questions": [],
        },
    }


@router.post("/{form_id}/sections/reorder")
async def reorder_sections(
    payload: SectionReorderRequest,
    form: Form = Depends(get_owned_form),
    db: Session = Depends(get_db),
):
    """Reorder all sections of a form."""
    try:
        FormService(db).reorder_sections(form, payload.section_ids)
    except SectionOperationError as e:
        return error_response(400, str(e))
    return {"success": True, "message": "Sections reordered successfully!"}
