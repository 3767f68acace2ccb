from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

import requests
from pydantic import TypeAdapter, ValidationError

from ..errors import AuthError, ProtocolError, RemoteError, TransportError
from ..sync.models import DeltaBatch, Project, Section
from .retry import retry_with_backoff

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

REST_BASE_PATH = "/rest/v2/"
SYNC_BASE_PATH = "/sync/v9/"
ENDPOINT_SYNC = "sync"
ENDPOINT_QUICK_ADD = "quick/add"

_TRANSIENT_STATUS = {429, 500, 502, 503, 504}

_projects_adapter = TypeAdapter(list[Project])
_sections_adapter = TypeAdapter(list[Section])


class TodoistClient:
    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.rest_url = f"{config.base_url.rstrip('/')}{REST_BASE_PATH}"
        self.sync_url = f"{config.base_url.rstrip('/')}{SYNC_BASE_PATH}"

    @property
    def session(self) -> requests.Session:
        """Accessor for the current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.api_token}",
                "Content-Type": "application/json",
            }
        )
        return session

    def _request(self, method: str, url: str, **kwargs) -> Any:
        """Send one request, retrying transient failures.

        Returns the decoded JSON body.

        Raises:
            TransportError: Network failure, timeout, 429, or 5xx after retries.
            AuthError: 401 or 403.
            RemoteError: Any other non-2xx status.
            ProtocolError: The body is not JSON.
        """
        return retry_with_backoff(
            lambda: self._request_once(method, url, **kwargs),
            max_retries=self.config.max_retries,
        )

    def _request_once(self, method: str, url: str, **kwargs) -> Any:
        session = self._get_session()
        try:
            response = session.request(
                method, url, timeout=self.config.timeout, **kwargs
            )
        except requests.Timeout as e:
            raise TransportError(f"{method} {url} timed out: {e}") from e
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise AuthError(
                f"Todoist rejected the API token (HTTP {status})"
            )
        if status in _TRANSIENT_STATUS:
            raise TransportError(
                f"{method} {url} returned HTTP {status}"
            )
        if status >= 400:
            raise RemoteError(
                f"{method} {url} returned HTTP {status}: {response.text[:200]}",
                status_code=status,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(
                f"{method} {url} returned a non-JSON body"
            ) from e

    def get_projects(self) -> list[Project]:
        """
        Fetch every project.
        """
        data = self._request("GET", self.rest_url + "projects")
        try:
            return _projects_adapter.validate_python(data)
        except ValidationError as e:
            raise ProtocolError(f"Unexpected projects payload: {e}") from e

    def get_sections(self) -> list[Section]:
        """
        Fetch every section across all projects.
        """
        data = self._request("GET", self.rest_url + "sections")
        try:
            return _sections_adapter.validate_python(data)
        except ValidationError as e:
            raise ProtocolError(f"Unexpected sections payload: {e}") from e

    def sync(self, sync_token: str) -> DeltaBatch:
        """
        Fetch the tasks changed since *sync_token* (``"*"`` for everything).

        Returns:
            DeltaBatch with the changed items and the next sync token.
        """
        data = self._request(
            "POST",
            self.sync_url + ENDPOINT_SYNC,
            json={"sync_token": sync_token, "resource_types": ["all"]},
        )
        if not isinstance(data, dict):
            raise ProtocolError("Sync response is not a JSON object")
        try:
            return DeltaBatch.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"Unexpected sync payload: {e}") from e

    def quick_add(self, text: str, auto_reminder: bool = True) -> dict[str, Any]:
        """
        Create a task from quick-add shorthand.

        Args:
            text: Encoded quick-add string.
            auto_reminder: Let Todoist add its default reminder when the
                task has a due time.

        Returns:
            The created task as returned by Todoist.
        """
        if not text or not text.strip():
            raise ValueError("Quick-add text cannot be empty")
        logger.info("Quick add: %s", text)
        result = self._request(
            "POST",
            self.sync_url + ENDPOINT_QUICK_ADD,
            json={"text": text, "auto_reminder": auto_reminder},
        )
        return result if isinstance(result, dict) else {}

    def validate_connection(self) -> int:
        """
        Validate the token by listing projects.
        Returns the number of projects visible to the token.
        """
        return len(self.get_projects())
