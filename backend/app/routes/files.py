"""
OpsLedger Backend — Stored File Route
=======================================

What:  GET /api/files/{path}: serves profile images written by FileService.
Security:
    - the path is resolved relative to STORAGE_ROOT and anything escaping
      it is rejected (400)
    - only files that exist are served (404 otherwise)
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.exceptions import NotFoundError
from app.schemas.common import ErrorResponse
from app.services.file_service import file_service

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get(
    "/{file_path:path}",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve an uploaded image",
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve(file_path)
    if not full_path.is_file():
        raise NotFoundError(resource="File", resource_id=file_path)

    # Stored names are UUIDs, so a given URL always holds the same bytes.
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
