"""Shared fixtures: a scripted subprocess runner and a scratch filesystem root."""

from pathlib import Path

import pytest

from vaapicheck.scanner.commands import EXIT_NOT_FOUND, CommandResult


class FakeRunner:
    """Runner double. Responses are keyed by command line prefix; longest match wins."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def __call__(self, cmd, args=(), timeout=10, **kwargs):
        line = " ".join([cmd, *args])
        self.calls.append(line)
        for key in sorted(self.responses, key=len, reverse=True):
            if line == key or line.startswith(key + " "):
                return self.responses[key]
        return CommandResult(EXIT_NOT_FOUND)

    def ran(self, prefix: str) -> bool:
        return any(c.startswith(prefix) for c in self.calls)


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def root(tmp_path) -> Path:
    r = tmp_path / "root"
    r.mkdir()
    return r


@pytest.fixture
def home(tmp_path) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    return h
