"""Shared fixtures: fake HTTP session, sample packages, dummy step inputs."""

import json

import pytest
import requests


def make_response(status_code: int, body: str | dict = "") -> requests.Response:
    """Build a fully-read requests.Response."""
    response = requests.Response()
    response.status_code = status_code
    response._content = (json.dumps(body) if isinstance(body, dict) else body).encode("utf-8")
    response._content_consumed = True
    response.encoding = "utf-8"
    return response


class FakeSession(requests.Session):
    """Session that records prepared requests and replays canned responses."""

    def __init__(self, responses=None):
        super().__init__()
        self.responses = list(responses or [])
        self.sent: list[requests.PreparedRequest] = []

    def send(self, request, **kwargs):
        self.sent.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        response.request = request
        response.url = request.url
        return response


@pytest.fixture
def apk(tmp_path):
    path = tmp_path / "app.apk"
    path.write_bytes(b"PK\x03\x04 apk payload")
    return path


@pytest.fixture
def second_apk(tmp_path):
    path = tmp_path / "app-release.apk"
    path.write_bytes(b"PK\x03\x04 second payload")
    return path


@pytest.fixture
def mapping(tmp_path):
    path = tmp_path / "mapping.txt"
    path.write_text("com.example.A -> a:\n")
    return path


@pytest.fixture
def step_env():
    """Minimal valid step inputs, without any package path."""
    return {
        "api_token": "token",
        "notes_type": "0",
        "notify": "2",
        "status": "2",
        "mandatory": "false",
    }
