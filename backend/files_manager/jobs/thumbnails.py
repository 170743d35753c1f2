"""Thumbnail job: resize an uploaded image to each derivative width."""

import io
import logging
from typing import Any, Dict, Optional

from PIL import Image

from files_manager.db.session import get_session
from files_manager.files.models import THUMBNAIL_WIDTHS
from files_manager.files.repository import FileRepository
from files_manager.files.storage import LocalByteStore, derivative_path, get_byte_store
from files_manager.jobs.dlq import PermanentJobError

log = logging.getLogger(__name__)


def make_thumbnail(original: bytes, width: int) -> bytes:
    """Resize image bytes to width, keeping aspect ratio and the source format."""
    with Image.open(io.BytesIO(original)) as img:
        fmt = img.format or "PNG"
        height = max(1, round(img.height * width / img.width))
        resized = img.resize((width, height), Image.Resampling.LANCZOS)
        if fmt == "JPEG" and resized.mode not in ("RGB", "L"):
            resized = resized.convert("RGB")
        out = io.BytesIO()
        resized.save(out, format=fmt)
    return out.getvalue()


def generate_thumbnails(store: LocalByteStore, local_path: str) -> None:
    """
    Write every derivative of local_path. Each output path is deterministic and
    replaced wholesale, so a failed run is simply repeated from the first width.
    """
    original = store.read(local_path)
    for width in THUMBNAIL_WIDTHS:
        store.write(derivative_path(local_path, width), make_thumbnail(original, width))
        log.debug("Thumbnail width=%d written for %s", width, local_path)


async def process_thumbnail_job(payload: Dict[str, Any], store: Optional[LocalByteStore] = None) -> None:
    """Handler for thumbnail jobs: payload {"userId", "fileId"}."""
    file_id = payload.get("fileId")
    user_id = payload.get("userId")
    if not file_id:
        raise PermanentJobError("Missing fileId")
    if not user_id:
        raise PermanentJobError("Missing userId")
    async with get_session() as session:
        file = await FileRepository(session).find_by_id(file_id)
    if file is None or str(file.user_id) != str(user_id):
        raise PermanentJobError("File not found")
    if not file.local_path:
        raise PermanentJobError(f"File {file_id} has no content")
    store = store or get_byte_store()
    try:
        generate_thumbnails(store, file.local_path)
    except FileNotFoundError as e:
        raise PermanentJobError(str(e)) from e
    log.info("Thumbnails generated for file id=%s", file.id)
