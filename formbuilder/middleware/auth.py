"""Authentication and form ownership checks.

Authentication itself happens upstream (an auth proxy or identity provider
in front of the service). The proxy forwards the authenticated user id in a
request header; this module turns that header into a principal and checks
that the principal owns the form it is about to modify.

Status codes:
    401: No authenticated principal on the request
    404: Form does not exist
    403: Form exists but belongs to someone else
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from formbuilder.config import get_settings
from formbuilder.models.database import get_db
from formbuilder.models.form import Form
from formbuilder.logging_config import get_logger

logger = get_logger(__name__)


class FormOwnershipChecker:
    """Answer "may this principal modify this form?"."""

    def __init__(self, db: Session):
        self.db = db

    def get_form(self, form_id: str) -> Optional[Form]:
        return self.db.execute(
            select(Form).where(Form.id == form_id)
        ).scalar_one_or_none()

    def is_owner(self, form_id: str, user_id: str) -> bool:
        """Return True if the form exists and belongs to ``user_id``."""
        form = self.get_form(form_id)
        return form is not None and form.is_owned_by(user_id)

    def load_owned_form(self, form_id: str, user_id: str) -> Form:
        """Load a form the user is allowed to modify.

        Args:
            form_id: Target form
            user_id: Authenticated principal

        Returns:
            Form: The owned form, attached to this session

        Raises:
            HTTPException(404): If the form does not exist
            HTTPException(403): If the form belongs to another user
        """
        form = self.get_form(form_id)
        if form is None:
            raise HTTPException(status_code=404, detail="Form not found")
        if not form.is_owned_by(user_id):
            logger.warning(
                f"User {user_id} denied access to form {form_id}",
                extra={"form_id": form_id, "user_id": user_id}
            )
            raise HTTPException(status_code=403, detail="Form not found or access denied")
        return form


async def get_current_user_id(request: Request) -> str:
    """FastAPI dependency returning the authenticated user id.

    Args:
        request: FastAPI request object

    Returns:
        str: User id taken from the configured auth header

    Raises:
        HTTPException(401): If the header is missing or blank

    Usage:
        @router.get("/api/forms")
        async def list_forms(user_id: str = Depends(get_current_user_id)):
            ...
    """
    header = get_settings().auth_user_header
    user_id = (request.headers.get(header) or "").strip()
    if not user_id:
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(
            f"Unauthenticated request to {request.url.path} from IP: {client_ip}",
            extra={"client_ip": client_ip}
        )
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


def get_owned_form(
    form_id: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Form:
    """FastAPI dependency resolving the ``form_id`` path parameter to an owned form."""
    return FormOwnershipChecker(db).load_owned_form(form_id, user_id)
