"""
JSON Document Module

InMemoryDocument persisted as a JSON file, so the command line can run
imports against the same document across invocations.

File layout:
    {
      "version": "1.0",
      "format": "level_importer_document",
      "next_id": 12,
      "plan_view_type": true,
      "levels": [{"id": 1, "name": "P1", "elevation": 0.0, "read_only": false}],
      "views":  [{"id": 2, "name": "Planta - P1", "level_id": 1, "scale": 100,
                  "crop_active": true, "crop_visible": false}]
    }

Elevations are stored in canonical units (feet).
"""
import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Union
import logging

from .memory import InMemoryDocument, LevelRecord, ViewRecord, DocumentState
from ..engine.errors import SourceUnavailable


logger = logging.getLogger(__name__)

DOCUMENT_FORMAT = "level_importer_document"


class JsonDocument(InMemoryDocument):
    """In-memory document loaded from and saved to a JSON file."""

    def __init__(self, path: Union[str, Path], **kwargs):
        super().__init__(**kwargs)
        self.path = Path(path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'JsonDocument':
        """
        Load a document from disk.

        A missing file gives an empty document that will be created on save.

        Args:
            path: JSON document path

        Returns:
            JsonDocument instance

        Raises:
            SourceUnavailable: The file exists but is not a valid document
        """
        document = cls(path)
        if not document.path.exists():
            logger.info(f"Document {document.path} does not exist - starting empty")
            return document

        try:
            with open(document.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise SourceUnavailable(f"Cannot read document {document.path}: {e}") from e

        if not isinstance(data, dict) or data.get("format") != DOCUMENT_FORMAT:
            raise SourceUnavailable(f"{document.path} is not a level importer document")

        try:
            state = DocumentState(next_id=int(data.get("next_id", 1)))
            for item in data.get("levels", []):
                record = LevelRecord(**item)
                state.levels[record.id] = record
            for item in data.get("views", []):
                record = ViewRecord(**item)
                state.views[record.id] = record
        except (TypeError, ValueError) as e:
            raise SourceUnavailable(f"Malformed document {document.path}: {e}") from e

        used = list(state.levels) + list(state.views)
        state.next_id = max([state.next_id] + [i + 1 for i in used])

        document.state = state
        document.plan_view_type = bool(data.get("plan_view_type", True))
        logger.info(
            f"Loaded document {document.path}: "
            f"{len(state.levels)} levels, {len(state.views)} views"
        )
        return document

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Write the document to disk.

        Args:
            path: Target path; defaults to the path the document was loaded from

        Returns:
            Path written
        """
        if self.group_open or self.transaction_open:
            raise RuntimeError("Cannot save while a transaction or group is open")

        target = Path(path) if path else self.path
        target.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": "1.0",
            "format": DOCUMENT_FORMAT,
            "next_id": self.state.next_id,
            "plan_view_type": self.plan_view_type,
            "levels": [asdict(r) for r in self.state.levels.values()],
            "views": [asdict(r) for r in self.state.views.values()],
        }
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

        logger.info(f"Document saved to {target}")
        return target
