"""Shared fixtures for hrun tests."""

import json

import pytest
import requests
from click.testing import CliRunner
from requests.structures import CaseInsensitiveDict

from hrun import core
from hrun.executor import Response
from hrun.models import Request


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def global_hrun_dir(tmp_path, monkeypatch):
    """Override the global ~/.hrun directory to a temp location."""
    fake_global = tmp_path / "fake_home" / ".hrun"
    fake_global.mkdir(parents=True)
    monkeypatch.setattr(core, "GLOBAL_DIR", fake_global)
    monkeypatch.setattr(core, "GLOBAL_CONFIG", fake_global / "config.yaml")
    return fake_global


@pytest.fixture
def project(tmp_path, monkeypatch, global_hrun_dir):
    """A temp project directory as CWD, isolated from the global config."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def make_response(
    status_code=200,
    body=None,
    headers=None,
    elapsed_ms=42.0,
    error=None,
    captured=None,
    request=None,
):
    """Factory for hrun Response objects."""
    r = Response(request or Request(method="GET", url="http://localhost/"))
    r.status_code = status_code
    r.status = f"{status_code} OK" if status_code == 200 else str(status_code)
    r.headers = headers or {}
    if isinstance(body, dict | list):
        body = json.dumps(body)
    r.body = body or ""
    r.elapsed_ms = elapsed_ms
    r.error = error
    r.captured_variables = captured or {}
    return r


def make_http_response(status_code=200, body="", headers=None, reason="OK"):
    """Factory for requests.Response objects as returned by Session.send."""
    r = requests.Response()
    r.status_code = status_code
    r.reason = reason
    if isinstance(body, dict | list):
        body = json.dumps(body)
    r._content = body.encode("utf-8")
    r._content_consumed = True
    r.encoding = "utf-8"
    r.headers = CaseInsensitiveDict(headers or {})
    return r
