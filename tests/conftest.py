"""Shared fixtures for the character simulation tests."""

from __future__ import annotations

import pytest

from officesim.logging_utils import SimulationLogger
from officesim.schemas import Character, Position


class RecordingLogger(SimulationLogger):
    """Logger that keeps every line instead of printing it."""

    def __init__(self) -> None:
        super().__init__(quiet=False)
        self.lines: list[tuple[str, str]] = []

    def _emit(self, tag, message, color) -> None:
        self.lines.append((tag, message))

    def messages(self, tag: str | None = None) -> list[str]:
        return [message for line_tag, message in self.lines if tag is None or line_tag == tag]


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def alice() -> Character:
    return Character(
        id="alice",
        name="Alice Moreau",
        job_role="Senior Coder",
        personality=["Analytical", "Introverted"],
        position=Position(x=0.5, y=0.5),
    )


@pytest.fixture
def bob() -> Character:
    return Character(
        id="bob",
        name="Bob Tanaka",
        job_role="Manager",
        personality=["Extroverted"],
        position=Position(x=0.6, y=0.55),
    )


@pytest.fixture
def roster(alice: Character, bob: Character) -> dict[str, Character]:
    return {alice.id: alice, bob.id: bob}
