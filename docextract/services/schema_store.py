"""
schema_store.py

Keeps named schema definitions.

Schemas live in memory. When a file path is configured, the whole
store is written to that JSON file after each change and loaded
from it at startup.

Names are unique. The store, not the pipeline, enforces that.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from docextract.exceptions import SchemaConflict, SchemaNotFound, SchemaStoreError
from docextract.schemas.file_schema import StoredSchemaDocument

logger = logging.getLogger(__name__)


class SchemaStore:
    """Thread-safe name -> StoredSchemaDocument map with optional file persistence."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self._lock = threading.Lock()
        self._documents: Dict[str, StoredSchemaDocument] = {}

        if self.path and self.path.exists():
            self._load()

    def create(
        self,
        name: str,
        definition: Dict[str, Any],
        description: Optional[str] = None,
    ) -> StoredSchemaDocument:
        """
        Store a new schema.

        Raises:
        - SchemaConflict if the name is already taken
        - SchemaStoreError if the schema file cannot be written
        """

        name = name.strip()
        with self._lock:
            if name in self._documents:
                raise SchemaConflict(name)

            document = StoredSchemaDocument(
                schema_name=name,
                description=description,
                json_schema=definition,
                created_at=datetime.now(timezone.utc),
            )
            updated = dict(self._documents)
            updated[name] = document
            self._save(updated)
            self._documents = updated

        logger.info("Schema '%s' created", name)
        return document

    def find_by_name(self, name: str) -> Optional[StoredSchemaDocument]:
        with self._lock:
            return self._documents.get(name.strip())

    def find_all(self) -> List[StoredSchemaDocument]:
        with self._lock:
            return list(self._documents.values())

    def delete_by_name(self, name: str) -> None:
        """
        Remove a schema.

        Raises:
        - SchemaNotFound if no schema has that name
        - SchemaStoreError if the schema file cannot be written
        """

        name = name.strip()
        with self._lock:
            if name not in self._documents:
                raise SchemaNotFound(name)
            updated = dict(self._documents)
            del updated[name]
            self._save(updated)
            self._documents = updated

        logger.info("Schema '%s' deleted", name)

    def _load(self) -> None:
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        for item in raw:
            document = StoredSchemaDocument.model_validate(item)
            self._documents[document.schema_name] = document
        logger.info("Loaded %d schema(s) from %s", len(self._documents), self.path)

    def _save(self, documents: Dict[str, StoredSchemaDocument]) -> None:
        """
        Write `documents` to the schema file.

        The file is written to a temporary sibling and moved into place,
        so a failed write leaves both the old file and the in-memory
        state untouched. Caller holds the lock.

        Raises:
        - SchemaStoreError if the file cannot be written
        """

        if not self.path:
            return

        payload = [
            document.model_dump(mode="json", by_alias=True)
            for document in documents.values()
        ]
        temp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                delete=False,
            ) as handle:
                temp_name = handle.name
                json.dump(payload, handle, indent=2, ensure_ascii=False)
            os.replace(temp_name, self.path)
        except OSError as error:
            logger.error("Failed to write schema file %s: %s", self.path, error)
            if temp_name and os.path.exists(temp_name):
                os.remove(temp_name)
            raise SchemaStoreError("Failed to save the schema store.", original=error) from error
