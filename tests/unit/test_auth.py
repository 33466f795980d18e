"""Unit tests for authentication and form ownership checks."""

import pytest
from unittest.mock import Mock, patch
from fastapi import HTTPException, Request

from formbuilder.middleware.auth import FormOwnershipChecker, get_current_user_id


class TestGetCurrentUserId:
    """Test suite for the get_current_user_id dependency."""

    @pytest.fixture
    def mock_request(self):
        """Mock FastAPI request."""
        request = Mock(spec=Request)
        request.client = Mock()
        request.client.host = "192.168.1.1"
        request.url = Mock()
        request.url.path = "/api/forms/abc"
        request.headers = {}
        return request

    @pytest.mark.asyncio
    async def test_returns_header_value(self, mock_request):
        mock_request.headers = {"X-User-Id": "user_42"}

        assert await get_current_user_id(mock_request) == "user_42"

    @pytest.mark.asyncio
    async def test_strips_whitespace(self, mock_request):
        mock_request.headers = {"X-User-Id": "  user_42 "}

        assert await get_current_user_id(mock_request) == "user_42"

    @pytest.mark.asyncio
    async def test_missing_header_is_unauthorized(self, mock_request):
        """Test that a request without a principal is rejected and logged."""
        with patch("formbuilder.middleware.auth.logger") as mock_logger:
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user_id(mock_request)

            warning_msg = str(mock_logger.warning.call_args)
            assert "/api/forms/abc" in warning_msg
            assert "192.168.1.1" in warning_msg

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_blank_header_is_unauthorized(self, mock_request):
        mock_request.headers = {"X-User-Id": "   "}

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user_id(mock_request)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_no_client_info(self, mock_request):
        """Test that a missing client address is logged as unknown."""
        mock_request.client = None

        with patch("formbuilder.middleware.auth.logger") as mock_logger:
            with pytest.raises(HTTPException):
                await get_current_user_id(mock_request)

            assert "unknown" in str(mock_logger.warning.call_args)

    @pytest.mark.asyncio
    async def test_configured_header_name(self, mock_request):
        mock_request.headers = {"X-Forwarded-User": "proxy_user"}

        with patch("formbuilder.middleware.auth.get_settings") as mock_get_settings:
            mock_get_settings.return_value = Mock(auth_user_header="X-Forwarded-User")
            assert await get_current_user_id(mock_request) == "proxy_user"


class TestFormOwnershipChecker:
    """Test suite for FormOwnershipChecker."""

    def test_owner_loads_form(self, db_session, build_form):
        form = build_form(owner_id="alice")

        loaded = FormOwnershipChecker(db_session).load_owned_form(form.id, "alice")

        assert loaded.id == form.id

    def test_missing_form_is_not_found(self, db_session):
        with pytest.raises(HTTPException) as exc_info:
            FormOwnershipChecker(db_session).load_owned_form("does_not_exist", "alice")

        assert exc_info.value.status_code == 404

    def test_other_user_is_forbidden(self, db_session, build_form):
        form = build_form(owner_id="alice")

        with pytest.raises(HTTPException) as exc_info:
            FormOwnershipChecker(db_session).load_owned_form(form.id, "mallory")

        assert exc_info.value.status_code == 403

    def test_is_owner(self, db_session, build_form):
        form = build_form(owner_id="alice")
        checker = FormOwnershipChecker(db_session)

        assert checker.is_owner(form.id, "alice") is True
        assert checker.is_owner(form.id, "bob") is False
        assert checker.is_owner("missing", "alice") is False
