"""Settings blob persistence and the sync cursor store.

The cursor and every mirror layout option live together in one JSON
file.  Missing keys fall back to ``Settings`` defaults, unknown keys are
dropped, and every mutation is written straight back to disk.

Key design choices:

* **Atomic writes** -- ``save()`` writes to a temp file then calls
  ``os.replace()`` so readers never see partial data.
* **Cursor commits are explicit** -- the engine calls ``set_cursor()``
  once per cycle, after every mirror change of the batch has landed.
* **Serialized mutations** -- ``update()`` holds a lock across load and
  save, so a cursor commit from the engine thread and a settings change
  from a tool handler cannot overwrite each other.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from .models import FULL_SYNC_TOKEN, Settings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Load, save, and mutate the settings blob.

    Args:
        path: Location of the JSON settings file.  Its parent directory is
            created on first save.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> Settings:
        """Return the stored settings, or defaults if the file is absent."""
        if not self._path.exists():
            return Settings()
        with open(self._path, encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(
                f"Settings file {self._path} must contain a JSON object"
            )
        return Settings(**data)

    def save(self, settings: Settings) -> None:
        """Persist *settings* atomically, creating the parent directory."""
        with self._lock:
            self._save(settings)

    def _save(self, settings: Settings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self._path.parent), suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(settings.model_dump(), fh, indent=2)
            os.replace(tmp_path, self._path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def update(self, **changes: Any) -> Settings:
        """Apply *changes* to the stored settings and save immediately.

        Values are validated through ``Settings``; unknown field names
        raise ``ValueError``.
        """
        unknown = set(changes) - set(Settings.model_fields)
        if unknown:
            raise ValueError(
                f"Unknown setting(s): {', '.join(sorted(unknown))}"
            )
        with self._lock:
            current = self.load()
            updated = Settings(**{**current.model_dump(), **changes})
            self.save(updated)
        return updated

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    def get_cursor(self) -> str:
        return self.load().sync_token

    def set_cursor(self, token: str) -> None:
        if not token:
            raise ValueError("Sync token cannot be empty")
        self.update(sync_token=token)
        logger.debug("Sync cursor committed: %s", token)

    def reset_cursor(self) -> None:
        """Force the next cycle to fetch a full snapshot."""
        self.set_cursor(FULL_SYNC_TOKEN)
