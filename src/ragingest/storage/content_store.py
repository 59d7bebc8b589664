"""Persistence of original document bytes."""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from pathlib import Path

from ragingest.documents.schemas import Document
from ragingest.errors import StoreError

logger = logging.getLogger(__name__)


class ContentStore(ABC):
    """Interface for keeping the original upload (traceability, re-ingest)."""

    @abstractmethod
    def put(self, document: Document) -> str:
        """Persist ``document`` and return its location.

        Raises:
            StoreError: if the bytes could not be written.
        """

    @classmethod
    def store_name(cls) -> str:
        return cls.__name__


def sanitize_name(name: str) -> str:
    return name.replace("/", "_").replace("\\", "_")


class FileSystemContentStore(ContentStore):
    """Write originals under ``base_dir`` as ``<UTC timestamp>_<name>``."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)

    def put(self, document: Document) -> str:
        stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
        path = self.base_dir / f"{stamp}_{sanitize_name(document.name)}"
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            document.rewind()
            with open(path, "wb") as fh:
                shutil.copyfileobj(document.reader, fh)
        except OSError as exc:
            raise StoreError(f"storing {document.name}: {exc}") from exc
        finally:
            document.rewind()

        logger.info("Stored original %s at %s", document.name, path)
        return path.resolve().as_uri()
