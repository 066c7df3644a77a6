"""
JSON Store Module

Durable key-value storage of JSON documents, one file per key. This is the
only module that touches the storage directory; accounts and quiz progress
address it through fixed keys.

Example Usage:
    from src.utils.store import JsonStore, SESSION_KEY

    store = JsonStore(storage_dir="data")

    store.set(SESSION_KEY, user.model_dump(mode="json", by_alias=True))
    document = store.get(SESSION_KEY)   # None if absent or corrupted
    store.remove(SESSION_KEY)
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Optional

from src.utils.logger import get_logger

SESSION_KEY = "current-session"
REGISTRY_KEY = "user-registry"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def quiz_progress_key(user_id: str) -> str:
    """Store key for a user's unfinished quiz."""
    return f"quiz-progress-{user_id}"


class JsonStore:
    """Single-process key-value store of JSON documents."""

    def __init__(
        self,
        storage_dir: str | Path = "data",
        correlation_id: Optional[str] = None,
    ):
        """
        Initialize JsonStore.

        Args:
            storage_dir: Directory path for document files (default: "data")
            correlation_id: Correlation ID for logging
        """
        self.storage_dir = Path(storage_dir)
        self.logger = get_logger(
            correlation_id=correlation_id, phase="storage", component="json_store"
        )
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self.storage_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        """
        Read the document stored under a key.

        A document that cannot be decoded is logged, deleted, and reported as
        absent.

        Args:
            key: Document key (e.g., "current-session")

        Returns:
            Decoded JSON document, or None if absent or corrupted
        """
        path = self._path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.error(
                "store_document_corrupted", key=key, path=str(path), error=str(e)
            )
            path.unlink(missing_ok=True)
            return None

    def set(self, key: str, document: Any) -> None:
        """
        Write a document under a key, replacing any previous one.

        The write goes to a temporary file first and is then moved into place,
        so a crash never leaves a half-written document behind.

        Args:
            key: Document key
            document: JSON-serializable value

        Raises:
            IOError: If the document cannot be written
        """
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, path)
        except (TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise IOError(f"Document for key {key} is not JSON-serializable: {e}") from e
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise IOError(f"Failed to write document for key {key}: {e}") from e

        self.logger.debug("store_document_written", key=key)

    def remove(self, key: str) -> None:
        """Delete the document under a key. Missing keys are ignored."""
        self._path_for(key).unlink(missing_ok=True)
        self.logger.debug("store_document_removed", key=key)

    def contains(self, key: str) -> bool:
        return self._path_for(key).exists()
