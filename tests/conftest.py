"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

# Ensure src/ is on the import path (for local imports without installing as package)
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


class FakeCompletions:
    """Stands in for ``OpenAI().chat.completions``; records every request."""

    def __init__(self, reply: Optional[str] = "ok", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(role="assistant", content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


class FakeOpenAI:
    def __init__(self, reply: Optional[str] = "ok", error: Optional[Exception] = None):
        self.completions = FakeCompletions(reply=reply, error=error)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the root directory of the project."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(scope="function")
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """Ensure tests run with a clean environment (no leftover vars)."""
    for var in list(os.environ):
        if var.startswith("MESSAGE_RELAY"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    yield


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI(reply="  rephrased text \n")


@pytest.fixture
def failing_openai() -> FakeOpenAI:
    return FakeOpenAI(error=RuntimeError("quota exceeded"))
