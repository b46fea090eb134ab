"""
Heritage Numérique Backend — Uploaded Media Route
==================================================

What:  Serves stored media at <uploads_url_prefix>/<subdir>/<file>, the URL
       saved on contents and tree members.
How:   FileService resolves the path and refuses anything outside
       storage_root (e.g. ../../etc/passwd). The media type is guessed from
       the extension by FileResponse.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from heritage.config import settings
from heritage.routes import error_responses
from heritage.services.file_service import file_service

router = APIRouter(prefix=settings.uploads_url_prefix, tags=["Media"])


@router.get(
    "/{file_path:path}",
    responses={200: {"description": "Stored file"}, **error_responses(400, 404)},
    summary="Serve an uploaded file",
)
async def serve_upload(file_path: str) -> FileResponse:
    full_path = file_service.resolve_stored_path(file_path)
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
