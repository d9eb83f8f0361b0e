"""
Object storage for uploaded files.

The relational tables only index files; the bytes live here, keyed by the
storage path the services build. The default backend is a local directory
(PRACTICE_STORAGE_DIR). Tests swap in failing subclasses with
set_object_store().
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from clinic_gateway.app.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class ObjectStore:
    """Interface for a bucket of objects addressed by relative path."""

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        raise NotImplementedError

    def download(self, path: str) -> bytes:
        raise NotImplementedError

    def remove(self, paths: Iterable[str]) -> None:
        raise NotImplementedError

    def exists(self, path: str) -> bool:
        raise NotImplementedError


class LocalObjectStore(ObjectStore):
    """Filesystem-backed store rooted at a single directory."""

    def __init__(self, root: Optional[str] = None):
        self.root = Path(
            root or os.getenv("PRACTICE_STORAGE_DIR", "/tmp/practice_gateway_objects")
        ).resolve()

    def _resolve(self, path: str) -> Path:
        if not path or path.startswith("/"):
            raise StorageError("Invalid storage path")
        target = (self.root / path).resolve()
        # Reject anything that escapes the root (e.g. "../")
        if self.root not in target.parents:
            raise StorageError("Invalid storage path")
        return target

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "xb") as f:
                f.write(data)
        except FileExistsError:
            raise StorageError("Object already exists")
        except OSError as e:
            logger.error("Upload failed for %s: %s", path, e)
            raise StorageError("Failed to upload file")
        logger.info("Stored object %s (%d bytes, %s)", path, len(data), content_type)
        return path

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError("File not found")
        try:
            return target.read_bytes()
        except OSError as e:
            logger.error("Download failed for %s: %s", path, e)
            raise StorageError("Failed to download file")

    def remove(self, paths: Iterable[str]) -> None:
        for path in paths:
            target = self._resolve(path)
            try:
                target.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("Remove failed for %s: %s", path, e)
                raise StorageError("Failed to remove file")

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()


_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """Get the process-wide object store, creating the local one on first use."""
    global _store
    if _store is None:
        _store = LocalObjectStore()
    return _store


def set_object_store(store: Optional[ObjectStore]) -> None:
    """Replace the process-wide object store (None resets to the default)."""
    global _store
    _store = store
