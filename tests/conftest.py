"""Shared fixtures for svcbuilder tests."""

from pathlib import Path
from typing import Sequence

import pytest

from svcbuilder.config import Config


class FakePrompter:
    """Scripted prompter: answers are looked up by a substring of the question."""

    def __init__(
        self,
        asks: dict[str, str] | None = None,
        confirms: dict[str, bool] | None = None,
        choice: str | None = None,
    ) -> None:
        self.asks = asks or {}
        self.confirms = confirms or {}
        self.choice = choice
        self.questions: list[str] = []

    def _lookup(self, table: dict, message: str):
        for key, value in table.items():
            if key.lower() in message.lower():
                return value
        raise AssertionError(f"Unexpected question: {message}")

    def ask(self, message: str, default: str | None = None, password: bool = False) -> str:
        self.questions.append(message)
        return self._lookup(self.asks, message)

    def confirm(self, message: str, default: bool = True) -> bool:
        self.questions.append(message)
        return self._lookup(self.confirms, message)

    def choose(self, message: str, choices: Sequence[tuple[str, str]], default: str | None = None) -> str:
        self.questions.append(message)
        if self.choice is None:
            raise AssertionError(f"Unexpected choice: {message}")
        return self.choice


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "config" / "config.yaml"


@pytest.fixture
def make_config(config_file: Path):
    def _make(**values) -> Config:
        return Config(config_file, values=values)

    return _make
