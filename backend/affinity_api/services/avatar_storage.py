"""Avatar files on local disk, served statically under /uploads/profiles."""

import logging
import secrets
import time
from pathlib import Path
from typing import Optional

from fastapi import Request

log = logging.getLogger(__name__)

PROFILE_SUBDIR = "profiles"

# Accepted avatar types and the suffix each is stored under
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def image_extension(content_type: Optional[str]) -> Optional[str]:
    """Suffix for an accepted image content type, ``None`` for anything else."""
    if not content_type:
        return None
    return IMAGE_EXTENSIONS.get(content_type.split(";")[0].strip().lower())


class AvatarStorage:
    """Stores one file per avatar under ``<upload_dir>/profiles``."""

    def __init__(self, upload_dir: str):
        self.root = Path(upload_dir) / PROFILE_SUBDIR

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, filename: str) -> Path:
        # Stored references are bare names; never follow directories out of root
        return self.root / Path(filename).name

    def generate_filename(self, content_type: str) -> str:
        suffix = image_extension(content_type)
        if suffix is None:
            raise ValueError(f"Unsupported avatar content type: {content_type}")
        return f"profile-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"

    def save(self, content: bytes, content_type: str) -> str:
        self.ensure_root()
        filename = self.generate_filename(content_type)
        self.path_for(filename).write_bytes(content)
        log.debug(f"Stored avatar {filename} ({len(content)} bytes)")
        return filename

    def delete(self, filename: Optional[str]) -> bool:
        """Remove a stored avatar. A missing file is not an error."""
        if not filename:
            return False
        path = self.path_for(filename)
        if not path.exists():
            log.warning(f"Avatar file {filename} already absent")
            return False
        path.unlink()
        log.debug(f"Deleted avatar {filename}")
        return True

    def exists(self, filename: str) -> bool:
        return self.path_for(filename).exists()


def get_avatar_storage(request: Request) -> AvatarStorage:
    return request.app.state.avatar_storage
