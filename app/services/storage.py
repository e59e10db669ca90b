"""On-disk storage for uploaded files, keyed by generated storage filename."""

import secrets
import time
from pathlib import Path

from app.core.logging_config import get_logger

logger = get_logger(__name__)


def generate_storage_filename(original_name: str) -> str:
    """Opaque name like ``1718029300123-482913377.pdf``; keeps the extension."""
    ext = Path(original_name).suffix.lower()
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{ext}"


class UploadStorage:
    """Upload directory owned by one application instance."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def open(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Upload storage ready at {self.root}")

    def close(self) -> None:
        pass

    def path_for(self, storage_filename: str) -> Path:
        # Storage names are generated server-side; reject anything path-like.
        if Path(storage_filename).name != storage_filename:
            raise ValueError(f"Invalid storage filename: {storage_filename!r}")
        return self.root / storage_filename

    def save(self, original_name: str, content: bytes) -> str:
        """Write the upload under a fresh storage filename and return that name."""
        storage_filename = generate_storage_filename(original_name)
        path = self.path_for(storage_filename)
        while path.exists():
            storage_filename = generate_storage_filename(original_name)
            path = self.path_for(storage_filename)
        path.write_bytes(content)
        logger.debug(f"Stored upload {original_name!r} as {storage_filename}")
        return storage_filename

    def delete(self, storage_filename: str) -> None:
        try:
            self.path_for(storage_filename).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove stored upload {storage_filename}: {e}")
