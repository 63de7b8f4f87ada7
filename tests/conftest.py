from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def isolate_projectassist_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("PROJECTASSIST_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PROJECTASSIST_LOG_TO_FILE", "off")
