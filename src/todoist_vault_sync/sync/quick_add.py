"""Quick-add encoding: structured task request -> Todoist shorthand.

``encode_quick_add`` is a pure, order-sensitive string assembly::

    <title>[ p<priority>][ #<project>][ @<label>][ <recurrence> starting][ <due>][ // <description>]

Inputs are validated before encoding and rejected with ``QuickAddError``
rather than producing shorthand Todoist would misparse.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pydantic import BaseModel, field_validator

from ..errors import QuickAddError
from ..file_handler import read_file_with_encoding, resolve_vault_path
from .codec import decode_mirror_file, format_due

if TYPE_CHECKING:
    from ..core.client import TodoistClient

logger = logging.getLogger(__name__)

NOTE_URL_SCHEME = "obsidian"
DESCRIPTION_SEPARATOR = "//"

_WHITESPACE = re.compile(r"\s")


class QuickAddOptions(BaseModel):
    """Optional parts of a quick-add request.

    Unknown keys are ignored so a note's whole frontmatter can be passed in.
    """

    due: Any = None
    project: str | None = None
    priority: int | None = None
    label: str | None = None
    recurrence: str | None = None
    description: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("project", "label", "recurrence", "description", mode="before")
    @classmethod
    def _stringify(cls, value):
        if value is None or value == "":
            return None
        return str(value)


def _validate(title: str, options: QuickAddOptions) -> None:
    if not title or not title.strip():
        raise QuickAddError("Task title cannot be empty")
    if "\n" in title:
        raise QuickAddError("Task title must be a single line")
    if options.priority is not None and not 1 <= options.priority <= 4:
        raise QuickAddError(
            f"Invalid priority {options.priority}: must be between 1 and 4"
        )
    for field, sigil in (("project", "#"), ("label", "@")):
        value = getattr(options, field)
        if value is not None and (_WHITESPACE.search(value) or value.startswith(sigil)):
            raise QuickAddError(
                f"Invalid {field} {value!r}: must be a single word without '{sigil}'"
            )


def encode_quick_add(
    title: str, description: str | None, options: QuickAddOptions
) -> str:
    """Encode a task request as quick-add shorthand.

    >>> encode_quick_add("Buy milk", "note", QuickAddOptions(priority=1, project="Home"))
    'Buy milk p1 #Home // note'

    Raises:
        QuickAddError: If the title is empty, the priority is outside 1-4,
            or the project or label contains whitespace.
    """
    _validate(title, options)

    segments: list[str] = []
    if options.priority is not None:
        segments.append(f"p{options.priority}")
    if options.project:
        segments.append(f"#{options.project}")
    if options.label:
        segments.append(f"@{options.label}")
    if options.recurrence:
        segments.append(f"{options.recurrence} starting")
    if options.due:
        segments.append(format_due(options.due))

    text = title.strip()
    for segment in segments:
        text += " " + segment
    if description:
        text += f" {DESCRIPTION_SEPARATOR} {description}"
    return text


def quick_add(
    client: TodoistClient,
    title: str,
    description: str | None,
    options: QuickAddOptions,
    auto_reminder: bool = True,
) -> tuple[str, dict[str, Any]]:
    """Encode the request and submit it through the quick-add endpoint.

    Returns:
        Tuple of (submitted shorthand text, created task payload).
    """
    text = encode_quick_add(title, description, options)
    return text, client.quick_add(text, auto_reminder=auto_reminder)


def note_url(vault_name: str, rel_path: str) -> str:
    """Deep link that opens a vault note."""
    return (
        f"{NOTE_URL_SCHEME}://open?vault={quote(vault_name)}"
        f"&file={quote(rel_path)}"
    )


def task_request_from_file(
    vault_root: Path, rel_path: str, vault_name: str | None = None
) -> tuple[str, str, QuickAddOptions]:
    """Build a quick-add request from a vault note.

    The title is the note's file name without extension, the options come
    from its frontmatter, and the description links back to the note
    (prefixed by the frontmatter ``description`` when present).
    *vault_name* defaults to the vault directory name.

    Returns:
        Tuple of (title, description, options).

    Raises:
        ValueError: If the path escapes the vault or is not a file.
    """
    root = Path(vault_root).resolve()
    path = resolve_vault_path(root, rel_path)
    if not path.is_file():
        raise ValueError(f"Note not found: {rel_path}")

    content, _ = read_file_with_encoding(path)
    frontmatter, _ = decode_mirror_file(content)
    options = QuickAddOptions.model_validate(frontmatter)

    description = note_url(
        vault_name or root.name, path.relative_to(root).as_posix()
    )
    if options.description:
        description = f"{options.description} {description}"

    return path.stem, description, options
