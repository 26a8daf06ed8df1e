"""Storage for justification documents.

The ledger only sees ``store(data, extension) -> reference``,
``retrieve(reference) -> bytes`` and ``delete(reference)``; references are
opaque file names.
"""
from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Protocol

from ..common.validators import sanitize_filename
from ..core.exceptions import RecordNotFound, StorageUnavailable

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def store(self, data: bytes, extension: str) -> str:
        raise NotImplementedError

    def retrieve(self, reference: str) -> bytes:
        raise NotImplementedError

    def delete(self, reference: str) -> None:
        """Remove a stored document; unknown references are ignored."""

        raise NotImplementedError


class FileSystemBlobStore(BlobStore):
    def __init__(self, root: str | Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, reference: str) -> Path:
        if not reference or sanitize_filename(reference) != reference:
            raise RecordNotFound("Document not found")
        return self._root / reference

    def store(self, data: bytes, extension: str) -> str:
        ext = sanitize_filename(extension).lower()
        reference = f"{uuid.uuid4().hex}.{ext}" if ext else uuid.uuid4().hex
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            (self._root / reference).write_bytes(data)
        except OSError as exc:
            logger.error("Could not write document to %s: %s", self._root, exc)
            raise StorageUnavailable("Document storage is unavailable") from exc
        return reference

    def retrieve(self, reference: str) -> bytes:
        path = self._path_for(reference)
        if not path.is_file():
            logger.warning("Document %s referenced but missing on disk", reference)
            raise RecordNotFound("Document not found")
        try:
            return path.read_bytes()
        except OSError as exc:
            logger.error("Could not read document %s: %s", reference, exc)
            raise StorageUnavailable("Document storage is unavailable") from exc

    def delete(self, reference: str) -> None:
        try:
            path = self._path_for(reference)
        except RecordNotFound:
            logger.warning("Refusing to delete invalid document reference %r", reference)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete document %s: %s", reference, exc)
