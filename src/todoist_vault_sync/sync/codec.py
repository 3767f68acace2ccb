"""Mirror file codec: task <-> Markdown file with YAML frontmatter.

A mirror file is ``---\\n<yaml>---\\n<task description>``.  Encoding is
deterministic: the same task, context, and settings always produce the
same bytes, so re-applying a task is a no-op on disk.

Planning (``plan_change``) is pure.  ``MirrorStore`` performs the I/O and
reports filesystem failures as ``LocalIOError``.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from ..errors import LocalIOError, ProtocolError
from ..file_handler import remove_file, resolve_vault_path, write_file
from .models import (
    MirrorAction,
    MirrorChange,
    Project,
    Section,
    Settings,
    Task,
)

logger = logging.getLogger(__name__)

TASK_URL_SCHEME = "todoist"
FRONTMATTER_DELIMITER = "---\n"

_DATE_TIME_SEPARATOR = re.compile(r"(\d)T(\d)")
_SECONDS = re.compile(r"(..:..):..")
_SAFE_TASK_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def task_link(task_id: str) -> str:
    return f"{TASK_URL_SCHEME}://task?id={task_id}"


def format_due(value: Any) -> str:
    """Normalize a due value to ``YYYY-MM-DD[ HH:MM]``.

    The first ``T`` between two digits becomes a space and the seconds of
    the first ``hh:mm:ss`` group are dropped.  Anything after the seconds
    (fractions, offsets) is kept as-is.

    >>> format_due("2024-01-02T15:30:00")
    '2024-01-02 15:30'
    """
    text = value.isoformat() if isinstance(value, date) else str(value)
    text = _DATE_TIME_SEPARATOR.sub(r"\1 \2", text, count=1)
    return _SECONDS.sub(r"\1", text, count=1)


def mirror_path(directory: str, task_id: str) -> PurePosixPath:
    """Vault-relative path of the mirror file for *task_id*."""
    if not _SAFE_TASK_ID.match(task_id):
        raise ProtocolError(f"Refusing unsafe task id {task_id!r}")
    return PurePosixPath(directory) / f"{task_id}.md"


def project_link(
    project_directory: str, project: Project, section: Section | None
) -> str:
    """Wiki link to the project (or section) note."""
    link = f"[[/{project_directory}/{project.name}/"
    if section is not None:
        return link + f"{section.name}/{section.name}]]"
    return link + f"{project.name}]]"


def build_metadata(
    task: Task,
    project: Project | None,
    section: Section | None,
    settings: Settings,
) -> dict[str, Any]:
    """Build the frontmatter mapping for *task* in a fixed key order."""
    metadata: dict[str, Any] = {
        "link": task_link(task.id),
        "due": format_due(task.due.date) if task.due else None,
        "priority": task.priority,
        "project": project.name if project else None,
        "section": section.name if section else None,
        "recurrence": task.due.string if task.due else None,
        "labels": [str(label) for label in task.labels],
        "created": task.added_at,
        "completed": task.completed_at,
    }
    metadata[settings.title_front_matter_key] = task.content

    if project is not None and settings.project_directory:
        metadata["projectLink"] = project_link(
            settings.project_directory, project, section
        )

    if settings.file_class:
        metadata["class"] = settings.file_class

    return metadata


def encode_mirror_file(metadata: dict[str, Any], body: str) -> str:
    """Serialize frontmatter + body into the full file content."""
    yaml_str = yaml.safe_dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        width=float("inf"),
    )
    return f"{FRONTMATTER_DELIMITER}{yaml_str}{FRONTMATTER_DELIMITER}{body}"


def decode_mirror_file(text: str) -> tuple[dict[str, Any], str]:
    """Split file content into (frontmatter mapping, body).

    Content without a leading frontmatter block decodes to ``({}, text)``.

    Raises:
        ValueError: If the frontmatter is not valid YAML or not a mapping.
    """
    text = text.replace("\r\n", "\n")
    if not text.startswith(FRONTMATTER_DELIMITER):
        return {}, text
    end = text.find("\n" + FRONTMATTER_DELIMITER, len(FRONTMATTER_DELIMITER) - 1)
    if end == -1:
        return {}, text

    try:
        metadata = yaml.safe_load(text[len(FRONTMATTER_DELIMITER) : end + 1])
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid frontmatter: {e}") from e
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ValueError("Frontmatter must be a YAML mapping")
    return metadata, text[end + 1 + len(FRONTMATTER_DELIMITER) :]


def plan_change(
    task: Task,
    project: Project | None,
    section: Section | None,
    settings: Settings,
) -> MirrorChange:
    """Decide what applying *task* does to the mirror.  No I/O."""
    path = str(mirror_path(settings.directory, task.id))
    if task.is_deleted:
        return MirrorChange(
            task_id=task.id, action=MirrorAction.DELETE, path=path
        )
    content = encode_mirror_file(
        build_metadata(task, project, section, settings), task.description
    )
    return MirrorChange(
        task_id=task.id,
        action=MirrorAction.WRITE,
        path=path,
        content=content,
    )


class MirrorStore:
    """Applies planned changes under a vault root.

    Args:
        vault_root: Absolute path of the vault.
    """

    def __init__(self, vault_root: Path) -> None:
        self.vault_root = Path(vault_root)

    def _resolve(self, rel_path: str) -> Path:
        try:
            return resolve_vault_path(self.vault_root, rel_path)
        except ValueError as e:
            raise LocalIOError(str(e)) from e

    def ensure_directory(self, directory: str) -> Path:
        """Create the mirror directory if absent.

        Raises:
            LocalIOError: If the directory escapes the vault or cannot be
                created.
        """
        target = self._resolve(directory)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise LocalIOError(
                f"Cannot create mirror directory {target}: {e}"
            ) from e
        return target

    def apply(self, change: MirrorChange) -> bool:
        """Write or delete one mirror file.

        Returns:
            ``True`` if the filesystem changed; deleting an absent file
            returns ``False`` and is not an error.

        Raises:
            LocalIOError: If the path escapes the vault, or the write or
                delete fails.
        """
        path = self._resolve(change.path)
        try:
            if change.action == MirrorAction.DELETE:
                removed = remove_file(path)
                if removed:
                    logger.debug("Removed %s", change.path)
                return removed
            write_file(path, change.content or "")
        except OSError as e:
            raise LocalIOError(
                f"Cannot {change.action.value} {path}: {e}"
            ) from e
        logger.debug("Wrote %s", change.path)
        return True

    def apply_task(
        self,
        task: Task,
        project: Project | None,
        section: Section | None,
        settings: Settings,
    ) -> MirrorChange:
        """Plan and apply *task* in one step."""
        change = plan_change(task, project, section, settings)
        self.apply(change)
        return change
