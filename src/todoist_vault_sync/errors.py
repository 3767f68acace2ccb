"""Exception taxonomy shared by the client, sync engine, and outer surfaces.

Remote failures are split so callers can tell a configuration problem
(``AuthError``) apart from a transient one (``TransportError``).  Local
mirror failures are ``LocalIOError``.  None of these are swallowed by the
engine: a failed cycle re-raises after logging and leaves the cursor alone.
"""


class TodoistSyncError(Exception):
    """Base class for all errors raised by todoist_vault_sync."""


class TransportError(TodoistSyncError):
    """Network failure, timeout, or a transient server-side error."""


class AuthError(TodoistSyncError):
    """The API token was rejected by Todoist."""


class RemoteError(TodoistSyncError):
    """Todoist answered with a non-transient error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(TodoistSyncError):
    """A response body could not be decoded into the expected shape."""


class LocalIOError(TodoistSyncError):
    """Creating, writing, moving, or deleting a mirror file failed."""


class SyncInProgressError(TodoistSyncError):
    """A sync cycle is already running for this engine."""


class QuickAddError(ValueError):
    """Quick-add input failed validation before encoding."""
