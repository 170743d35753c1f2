"""File API routes: upload, show, list, publish/unpublish, content."""

import logging
import mimetypes
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Response, status

from files_manager.auth.dependencies import get_current_user, get_optional_user
from files_manager.files.models import FileCreate, FileResponse
from files_manager.files.service import FileService, get_file_service
from files_manager.users.models import User

router = APIRouter(prefix="/files", tags=["files"])
log = logging.getLogger(__name__)


@router.post("", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    payload: FileCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileResponse:
    """Create a folder, file or image. Content (data) is base64."""
    file = await files.create(current_user.id, payload)
    return FileResponse.from_file(file)


@router.get("/{file_id}", response_model=FileResponse)
async def show_file(
    file_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileResponse:
    file = await files.get(current_user.id, file_id)
    return FileResponse.from_file(file)


@router.get("", response_model=List[FileResponse])
async def list_files(
    current_user: Annotated[User, Depends(get_current_user)],
    files: Annotated[FileService, Depends(get_file_service)],
    parentId: Optional[str] = "0",
    page: Optional[str] = "0",
) -> List[FileResponse]:
    """One page (20 items) of the current user's files under parentId (0 = root)."""
    result = await files.list(current_user.id, parentId, page)
    log.info("list_files user_id=%s parent=%s page=%s count=%d", current_user.id, parentId, page, len(result))
    return [FileResponse.from_file(f) for f in result]


@router.put("/{file_id}/publish", response_model=FileResponse)
async def publish_file(
    file_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileResponse:
    file = await files.set_visibility(current_user.id, file_id, True)
    return FileResponse.from_file(file)


@router.put("/{file_id}/unpublish", response_model=FileResponse)
async def unpublish_file(
    file_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    files: Annotated[FileService, Depends(get_file_service)],
) -> FileResponse:
    file = await files.set_visibility(current_user.id, file_id, False)
    return FileResponse.from_file(file)


@router.get("/{file_id}/data")
async def file_data(
    file_id: str,
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
    files: Annotated[FileService, Depends(get_file_service)],
    size: Optional[str] = None,
) -> Response:
    """
    Raw content, or a thumbnail when size is 100, 250 or 500.
    Public files are readable without a token. A missing, invalid or expired
    X-Token is downgraded to anonymous here instead of answering 401, so a stale
    token still reads public content and private content stays 404.
    """
    requester_id = current_user.id if current_user else None
    file, content = await files.read_content(requester_id, file_id, size)
    media_type = mimetypes.guess_type(file.name)[0] or "application/octet-stream"
    return Response(content=content, media_type=media_type)
