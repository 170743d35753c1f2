"""Local byte store: file content and derivatives under folder_path."""

import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Union

from files_manager.config import get_settings

log = logging.getLogger(__name__)


class LocalByteStore:
    """Paths are opaque keys; writes replace the target atomically."""

    def __init__(self, base_path: Union[str, Path]) -> None:
        self.base_path = Path(base_path)

    def new_path(self) -> str:
        """Fresh, unique path under the base folder for new content."""
        return str(self.base_path / str(uuid.uuid4()))

    def write(self, path: str, data: bytes) -> None:
        """Write data to path via a temp file + rename so readers never see a partial file."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp, target)
        except BaseException:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
        log.debug("Wrote %d bytes to %s", len(data), target)

    def read(self, path: str) -> bytes:
        """Return content of path. Raises FileNotFoundError if absent."""
        target = Path(path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return target.read_bytes()

    def exists(self, path: str) -> bool:
        return Path(path).is_file()

    def remove(self, path: str) -> None:
        """Delete path if present."""
        Path(path).unlink(missing_ok=True)
        log.debug("Removed %s", path)


def derivative_path(local_path: str, width: int) -> str:
    """Deterministic location of the thumbnail of local_path at width."""
    return f"{local_path}_{width}"


def get_byte_store() -> LocalByteStore:
    """FastAPI dependency: byte store rooted at settings.folder_path."""
    return LocalByteStore(get_settings().folder_path)
