from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.exceptions import PersistenceError
from app.db.bootstrap import normalize_state_document
from app.db.defaults import default_state
from app.schemas.timetable import FullTimetableState

logger = logging.getLogger(__name__)


class StateRepository:
    """Reads and writes the single JSON document holding canonical state."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self.last_saved_at: datetime | None = None

    def load(self) -> FullTimetableState:
        if self.path.exists():
            logger.info("Loading state from %s", self.path)
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.error("Could not load or parse state from %s: %s", self.path, exc)
            else:
                if isinstance(raw, dict) and isinstance(raw.get("settings"), dict):
                    return normalize_state_document(raw)
                logger.warning("State file %s is missing required fields", self.path)

        logger.info("No valid database found. Initializing with default state.")
        return default_state()

    def save(self, document: dict[str, Any]) -> None:
        """Write atomically: a sibling temp file is renamed over the target."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(document, handle, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Error saving state to {self.path}", details={"error": str(exc)}) from exc
        self.last_saved_at = datetime.now(timezone.utc)
