"""Tests for TodoistClient HTTP handling and payload validation."""

import json
from unittest.mock import Mock, patch

import pytest
import requests

from todoist_vault_sync.config import Config
from todoist_vault_sync.core.client import TodoistClient
from todoist_vault_sync.errors import (
    AuthError,
    ProtocolError,
    RemoteError,
    TransportError,
)

REQUEST = "todoist_vault_sync.core.client.requests.Session.request"


def _response(status=200, body=None, text=None):
    response = Mock()
    response.status_code = status
    if text is None:
        text = "" if body is None else json.dumps(body)
    response.text = text
    response.content = text.encode()
    if body is None and text:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = body
    return response


def test_urls_built_from_base(mock_config):
    client = TodoistClient(mock_config)
    assert client.rest_url == "https://api.todoist.com/rest/v2/"
    assert client.sync_url == "https://api.todoist.com/sync/v9/"


def test_trailing_slash_in_base_url(vault):
    config = Config(
        api_token="t", vault_path=str(vault), base_url="http://localhost:9000/"
    )
    assert TodoistClient(config).rest_url == "http://localhost:9000/rest/v2/"


def test_session_carries_bearer_token(mock_config):
    client = TodoistClient(mock_config)
    assert client.session.headers["Authorization"] == "Bearer test-token"


@patch(REQUEST)
def test_get_projects(mock_request, mock_config):
    mock_request.return_value = _response(
        body=[{"id": 1, "name": "Inbox", "color": "grey"}]
    )
    projects = TodoistClient(mock_config).get_projects()
    assert [(p.id, p.name) for p in projects] == [("1", "Inbox")]
    method, url = mock_request.call_args.args
    assert method == "GET"
    assert url == "https://api.todoist.com/rest/v2/projects"
    assert mock_request.call_args.kwargs["timeout"] == 30.0


@patch(REQUEST)
def test_get_sections(mock_request, mock_config):
    mock_request.return_value = _response(
        body=[{"id": "s1", "name": "Errands", "project_id": "p1"}]
    )
    sections = TodoistClient(mock_config).get_sections()
    assert sections[0].project_id == "p1"


@patch(REQUEST)
def test_malformed_projects_payload(mock_request, mock_config):
    mock_request.return_value = _response(body=[{"id": "1"}])
    with pytest.raises(ProtocolError):
        TodoistClient(mock_config).get_projects()


@patch(REQUEST)
def test_sync_posts_token(mock_request, mock_config):
    mock_request.return_value = _response(
        body={
            "sync_token": "tok-2",
            "full_sync": False,
            "items": [{"id": "1", "content": "x"}],
        }
    )
    batch = TodoistClient(mock_config).sync("tok-1")
    assert batch.sync_token == "tok-2"
    assert batch.items[0].content == "x"
    assert mock_request.call_args.kwargs["json"] == {
        "sync_token": "tok-1",
        "resource_types": ["all"],
    }
    assert mock_request.call_args.args[1].endswith("/sync/v9/sync")


@patch(REQUEST)
def test_sync_without_token_is_protocol_error(mock_request, mock_config):
    mock_request.return_value = _response(body={"items": []})
    with pytest.raises(ProtocolError):
        TodoistClient(mock_config).sync("*")


@patch(REQUEST)
def test_non_json_body(mock_request, mock_config):
    mock_request.return_value = _response(text="<html>")
    with pytest.raises(ProtocolError):
        TodoistClient(mock_config).sync("*")


@pytest.mark.parametrize("status", [401, 403])
@patch(REQUEST)
def test_auth_errors(mock_request, status, mock_config):
    mock_request.return_value = _response(status=status, text="Forbidden")
    with pytest.raises(AuthError):
        TodoistClient(mock_config).get_projects()


@pytest.mark.parametrize("status", [429, 500, 503])
@patch(REQUEST)
def test_transient_status_is_transport_error(mock_request, status, mock_config):
    mock_request.return_value = _response(status=status, text="busy")
    with pytest.raises(TransportError):
        TodoistClient(mock_config).get_projects()


@patch(REQUEST)
def test_other_4xx_is_remote_error(mock_request, mock_config):
    mock_request.return_value = _response(status=400, text="Bad request")
    with pytest.raises(RemoteError) as exc_info:
        TodoistClient(mock_config).get_projects()
    assert exc_info.value.status_code == 400


@patch(REQUEST)
def test_network_error_is_transport_error(mock_request, mock_config):
    mock_request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(TransportError):
        TodoistClient(mock_config).get_projects()


@patch("todoist_vault_sync.core.retry.time.sleep")
@patch(REQUEST)
def test_transient_failure_is_retried(mock_request, mock_sleep, vault):
    config = Config(api_token="t", vault_path=str(vault), max_retries=2)
    mock_request.side_effect = [
        requests.Timeout("slow"),
        _response(body=[]),
    ]
    assert TodoistClient(config).get_projects() == []
    assert mock_request.call_count == 2


@patch(REQUEST)
def test_quick_add(mock_request, mock_config):
    mock_request.return_value = _response(body={"id": "42", "content": "Buy milk"})
    result = TodoistClient(mock_config).quick_add("Buy milk #Home")
    assert result["id"] == "42"
    assert mock_request.call_args.kwargs["json"] == {
        "text": "Buy milk #Home",
        "auto_reminder": True,
    }
    assert mock_request.call_args.args[1].endswith("/sync/v9/quick/add")


def test_quick_add_rejects_empty_text(mock_config):
    with pytest.raises(ValueError):
        TodoistClient(mock_config).quick_add("  ")


@patch(REQUEST)
def test_validate_connection_counts_projects(mock_request, mock_config):
    mock_request.return_value = _response(
        body=[{"id": "1", "name": "A"}, {"id": "2", "name": "B"}]
    )
    assert TodoistClient(mock_config).validate_connection() == 2
