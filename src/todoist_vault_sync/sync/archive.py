"""Move completed task files out of the mirror directory.

Only files whose frontmatter has a non-empty ``completed`` value are
moved, into ``<directory>/Completed/``.  The engine never touches that
subfolder; a task that changes again remotely is written back to the
main directory by the next sync.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import LocalIOError
from ..file_handler import move_file, read_file_with_encoding, resolve_vault_path
from .codec import decode_mirror_file

logger = logging.getLogger(__name__)

COMPLETED_FOLDER = "Completed"


def archive_completed(vault_root: Path, directory: str) -> list[str]:
    """Move completed mirror files into the ``Completed`` subfolder.

    Args:
        vault_root: Absolute path of the vault.
        directory: Vault-relative mirror directory.

    Returns:
        Vault-relative POSIX paths of the moved files, in name order.

    Raises:
        LocalIOError: If the directory escapes the vault, the folder cannot
            be created, or a move fails.
    """
    root = Path(vault_root).resolve()
    try:
        task_dir = resolve_vault_path(root, directory)
    except ValueError as e:
        raise LocalIOError(str(e)) from e
    if not task_dir.is_dir():
        logger.info("Nothing to archive: %s does not exist", task_dir)
        return []

    completed_dir = task_dir / COMPLETED_FOLDER
    try:
        completed_dir.mkdir(exist_ok=True)
    except OSError as e:
        raise LocalIOError(f"Cannot create {completed_dir}: {e}") from e

    moved: list[str] = []
    for path in sorted(task_dir.glob("*.md")):
        if not path.is_file():
            continue
        try:
            content, _ = read_file_with_encoding(path)
            metadata, _ = decode_mirror_file(content)
        except ValueError as e:
            logger.warning("Skipping %s: %s", path.name, e)
            continue
        except OSError as e:
            raise LocalIOError(f"Cannot read {path}: {e}") from e

        if not metadata.get("completed"):
            continue

        target = completed_dir / path.name
        try:
            move_file(path, target)
        except OSError as e:
            raise LocalIOError(f"Cannot move {path} to {target}: {e}") from e
        moved.append(target.relative_to(root).as_posix())

    logger.info("Archived %d completed task(s)", len(moved))
    return moved
