"""Shared fixtures: a config, canned HTTP responses and a client on a mocked session."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from jira_cli.client import JiraClient
from jira_cli.config import JiraConfig


def make_response(status=200, body=None, reason="OK", text=None):
    """Build a real requests.Response with the given status and body."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.encoding = "utf-8"
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = (text or "").encode("utf-8")
    return response


@pytest.fixture
def config():
    return JiraConfig(domain="example.atlassian.net", auth_token="dXNlcjp0b2tlbg==")


@pytest.fixture
def session():
    session = requests.Session()
    session.request = MagicMock(return_value=make_response(204, reason="No Content"))
    return session


@pytest.fixture
def client(config, session):
    return JiraClient(config, session=session)
