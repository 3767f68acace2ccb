"""Pydantic models for the Todoist mirror.

Defines the data contracts shared across the sync modules:

- ``Due``, ``Task``, ``Project``, ``Section``: remote entities, validated
  at the client boundary so downstream code never handles raw JSON.
- ``DeltaBatch``: one response of the delta-sync endpoint.
- ``Settings``: the persisted settings blob (layout options + cursor).
- ``MirrorAction``, ``MirrorChange``: one planned change to the mirror.
- ``SyncReport``: aggregate result of one sync cycle.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

FULL_SYNC_TOKEN = "*"

_REMOTE_MODEL_CONFIG = {"frozen": True, "extra": "ignore", "coerce_numbers_to_str": True}


class Due(BaseModel):
    """Due information attached to a task.

    Attributes:
        date: ``YYYY-MM-DD`` or a full ISO date-time.
        string: Human-readable due text, e.g. ``"every monday"``.
        is_recurring: Whether the due date repeats.
        timezone: Timezone for floating date-times, if any.
    """

    date: str
    string: str | None = None
    is_recurring: bool = False
    timezone: str | None = None

    model_config = _REMOTE_MODEL_CONFIG


class Task(BaseModel):
    """A Todoist task as delivered by the sync endpoint."""

    id: str
    content: str = ""
    description: str = ""
    due: Due | None = None
    priority: int = Field(default=1, ge=1, le=4)
    labels: list[str] = []
    project_id: str | None = None
    section_id: str | None = None
    added_at: str | None = None
    completed_at: str | None = None
    is_deleted: bool = False

    model_config = _REMOTE_MODEL_CONFIG

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return "" if value is None else value


class Project(BaseModel):
    id: str
    name: str

    model_config = _REMOTE_MODEL_CONFIG


class Section(BaseModel):
    id: str
    name: str
    project_id: str | None = None

    model_config = _REMOTE_MODEL_CONFIG


class DeltaBatch(BaseModel):
    """One delta-sync response.

    Attributes:
        items: Changed tasks, in the order the service returned them.
        sync_token: Cursor to send on the next request.
        full_sync: True when the service answered with a full snapshot.
    """

    items: list[Task] = []
    sync_token: str
    full_sync: bool = False

    model_config = {"frozen": True, "extra": "ignore"}


class Settings(BaseModel):
    """Persisted settings blob.

    Holds the mirror layout options together with the sync cursor so both
    are loaded and saved as one unit.

    Attributes:
        key: API token fallback when no env var or CLI arg supplies one.
        directory: Vault-relative directory holding the mirror files.
        project_directory: Vault-relative directory project links point
            into.  Empty disables the ``projectLink`` field.
        file_class: Value of the ``class`` field.  Empty omits it.
        sync_token: Delta-sync cursor; ``"*"`` means full sync.
        auto_sync_frequency: Background sync interval in seconds; 0 disables.
        title_front_matter_key: Frontmatter key that carries the task title.
    """

    key: str = ""
    directory: str = "Todo"
    project_directory: str = "Projects"
    file_class: str = ""
    sync_token: str = FULL_SYNC_TOKEN
    auto_sync_frequency: float = Field(default=0, ge=0)
    title_front_matter_key: str = Field(default="alias", min_length=1)

    model_config = {"frozen": True, "extra": "ignore"}


class MirrorAction(str, Enum):
    """What applying a task does to its mirror file."""

    WRITE = "write"
    DELETE = "delete"


class MirrorChange(BaseModel):
    """A planned change to one mirror file.

    Attributes:
        task_id: Todoist task id.
        action: Write (create or overwrite) or delete.
        path: Vault-relative POSIX path of the mirror file.
        content: Full file content for writes, ``None`` for deletes.
    """

    task_id: str
    action: MirrorAction
    path: str
    content: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for one sync cycle.

    Attributes:
        full_sync: Whether the cycle requested a full snapshot.
        cursor_before: Cursor the delta was requested with.
        cursor_after: Cursor persisted at the end of the cycle.
        changes: Mirror changes applied, in order.
        started_at: ISO 8601 timestamp when the cycle started.
        completed_at: ISO 8601 timestamp when the cursor was committed.
    """

    full_sync: bool = False
    cursor_before: str
    cursor_after: str
    changes: list[MirrorChange] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def written(self) -> list[MirrorChange]:
        return [c for c in self.changes if c.action == MirrorAction.WRITE]

    @property
    def deleted(self) -> list[MirrorChange]:
        return [c for c in self.changes if c.action == MirrorAction.DELETE]

    def summary(self) -> str:
        """One line per counter, suitable for logs and notices."""
        lines = [
            "Todoist sync" + (" (full)" if self.full_sync else ""),
            f"  Written: {len(self.written)}",
            f"  Deleted: {len(self.deleted)}",
            f"  Total:   {len(self.changes)}",
        ]
        return "\n".join(lines)
