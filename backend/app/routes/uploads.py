"""
PlaceShare Backend - Uploaded Image Route
===========================================

What:  Serves stored place and avatar images at /uploads/{path}.
How:   Resolves the path through FileService.resolve(), which rejects any
       path escaping the storage root, and streams the file back.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.exceptions import NotFoundError
from app.services.file_service import file_service

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{file_path:path}",
    summary="Serve uploaded image files",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found"},
    },
)
async def serve_file(file_path: str) -> FileResponse:
    full_path = file_service.resolve(file_path)

    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    # media type is guessed from the stored extension
    return FileResponse(
        path=str(full_path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
