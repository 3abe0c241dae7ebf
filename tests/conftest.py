"""Fixtures for the assessment tests."""

from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace as NS

import pytest

from vcenter_assessment.config import Credential

from .fakes import NOW


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def credential():
    return Credential(username="administrator@vsphere.local", password="secret")


@pytest.fixture
def fake_sessions(monkeypatch):
    """Replace the real session manager; fill ``contents`` with server -> content."""
    contents: dict = {}
    opened: list[str] = []

    @contextmanager
    def fake_session(server, credential, port=443, disable_ssl=True):
        if server not in contents:
            raise ConnectionError(f"cannot reach {server}")
        opened.append(server)
        yield NS(content=contents[server])

    monkeypatch.setattr("vcenter_assessment.assessment.vcenter_session", fake_session)
    return NS(contents=contents, opened=opened)
