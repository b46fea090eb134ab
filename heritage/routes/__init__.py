"""
Heritage Numérique Backend — API Routes Package
================================================

What:  HTTP route handlers that accept requests and return responses.
How:   One module per resource. Every business router is mounted under
       settings.api_prefix (default /api/v1) by main.py; health and the
       uploads file route are not.

Route Inventory:
    - auth.py:           /auth/register, /auth/login, /auth/login-with-code, /auth/me
    - users.py:          /users/...
    - families.py:       /families/... (members, dashboard, contributions,
                         family contents and publication requests)
    - invitations.py:    /invitations/...
    - categories.py:     /categories
    - contents.py:       /contents/..., /publication-requests/...
    - public.py:         /public/... (no authentication)
    - genealogy.py:      /genealogy/...
    - quizzes.py:        /quizzes/...
    - notifications.py:  /notifications/...
    - dashboard.py:      /dashboard/me, /admin/statistics
    - uploads.py:        GET <uploads_url_prefix>/{path}
    - health.py:         GET /health

Routes stay thin: extract the request data, call one service, return its
result. Business rules and permission checks live in the services.
"""

from typing import Any, Dict, Optional

from fastapi import UploadFile

from heritage.schemas.common import ErrorResponse
from heritage.services.file_service import MediaUpload

_DESCRIPTIONS = {
    400: "Invalid input or business rule violated",
    401: "Not authenticated, or not a member of the family",
    403: "Role too low for this action",
    404: "Resource not found",
    429: "Rate limit exceeded",
    503: "Translation provider unavailable",
}


def error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """OpenAPI `responses` entries documenting the error envelope."""
    return {
        code: {"description": _DESCRIPTIONS[code], "model": ErrorResponse}
        for code in status_codes
    }


async def read_upload(file: Optional[UploadFile]) -> Optional[MediaUpload]:
    """
    Read a multipart file field into memory. An omitted field, or a browser
    sending an empty file input, yields None.
    """
    if file is None or not file.filename:
        return None
    try:
        content = await file.read()
    finally:
        await file.close()
    return MediaUpload(filename=file.filename, content=content, content_length=file.size)
