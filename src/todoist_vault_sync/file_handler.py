"""File handler module: vault path resolution and encoding-aware read/write.

Provides the file I/O used by the mirror store, the archiver, and the
create-from-file flow.  Everything here is blocking; async callers push
it onto a worker thread via ``run_sync()``.
"""

from pathlib import Path

from charset_normalizer import from_bytes

# =============================================================================
# Path Resolution
# =============================================================================


def resolve_vault_path(vault_root: Path, rel_path: str) -> Path:
    """Resolve a vault-relative path and keep it inside the vault.

    Args:
        vault_root: Root directory of the vault.
        rel_path: Path relative to the vault root (POSIX separators).

    Returns:
        Resolved absolute Path.

    Raises:
        ValueError: If the path is absolute or escapes the vault.
    """
    if Path(rel_path).is_absolute():
        raise ValueError(f"Path must be relative to the vault: {rel_path}")
    root = Path(vault_root).resolve()
    resolved = (root / rel_path).resolve()
    if not resolved.is_relative_to(root):
        raise ValueError(
            f"Path is outside the vault: {resolved} not under {root}"
        )
    return resolved


# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


def remove_file(path: Path) -> bool:
    """Delete *path* if it exists.

    Returns:
        ``True`` if a file was removed, ``False`` if it was already absent.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def move_file(source: Path, target: Path) -> Path:
    """Move *source* to *target*, creating the target directory."""
    target.parent.mkdir(parents=True, exist_ok=True)
    return source.replace(target)

