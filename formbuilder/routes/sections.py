"""Single-section endpoints used by the builder between full saves."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formbuilder.middleware.auth import get_current_user_id
from formbuilder.models.database import get_db
from formbuilder.routes.forms import error_response
from formbuilder.schemas.form import SectionUpdateRequest
from formbuilder.services.form_service import (
    FormService,
    SectionNotFoundError,
    SectionOperationError,
)
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/sections")


@router.patch("/{section_id}")
async def update_section(
    section_id: str,
    payload: SectionUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Update a section's title and/or description."""
    service = FormService(db)
    try:
        section = service.get_owned_section(section_id, user_id)
    except SectionNotFoundError:
        return error_response(404, "Section not found or access denied")

    section = service.update_section(section, payload.title, payload.description)
    return {
        "success": True,
        "message": "Section updated successfully!",
        "section": {
            "id": section.id,
            "title": section.title,
            "description": section.description,
            "order": section.order,
        },
    }


@router.delete("/{section_id}")
async def delete_section(
    section_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Delete a section; the last section of a form cannot be deleted."""
    service = FormService(db)
    try:
        section = service.get_owned_section(section_id, user_id)
        service.delete_section(section)
    except SectionNotFoundError:
        return error_response(404, "Section not found or access denied")
    except SectionOperationError as e:
        return error_response(400, str(e))

    return {"success": True, "message": "Section deleted successfully!"}
