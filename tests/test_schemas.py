"""Schema validation tests."""

import pytest
from pydantic import ValidationError

from officesim.schemas import (
    LONG_TERM_MEMORY_LIMIT,
    PROPOSAL_ACTIONS,
    SHORT_TERM_MEMORY_LIMIT,
    Character,
    CharacterState,
    ConsolidationResult,
    MemoryEvent,
    Position,
)


def test_character_defaults():
    character = Character(id="eve")

    assert character.name == "Character_eve"
    assert character.needs == {
        "energy": 8.0,
        "hunger": 8.0,
        "social": 8.0,
        "comfort": 8.0,
        "stress": 2.0,
    }
    assert character.state is CharacterState.IDLE
    assert character.current_action is None
    assert character.action_queue == []


def test_partial_needs_are_filled_from_defaults():
    character = Character(id="eve", needs={"energy": 3})

    assert character.needs["energy"] == 3.0
    assert character.needs["stress"] == 2.0


@pytest.mark.parametrize("needs", [{"energy": -0.1}, {"stress": 10.5}])
def test_needs_outside_scale_are_rejected(needs):
    with pytest.raises(ValidationError):
        Character(id="eve", needs=needs)


def test_position_bounds_and_clamping():
    with pytest.raises(ValidationError):
        Position(x=1.2, y=0.5)

    assert Position.clamped(-3, 7) == Position(x=0.0, y=1.0)
    assert Position(x=0, y=0).distance_to(Position(x=0.3, y=0.4)) == pytest.approx(0.5)


def test_memory_lists_are_capped():
    character = Character(id="eve")

    for index in range(SHORT_TERM_MEMORY_LIMIT + 5):
        character.remember(MemoryEvent(description=f"event {index}"))
    for index in range(LONG_TERM_MEMORY_LIMIT + 1):
        character.add_long_term_memory(f"summary {index}")

    assert len(character.short_term_memory) == SHORT_TERM_MEMORY_LIMIT
    assert character.short_term_memory[0].description == "event 5"
    assert len(character.long_term_memory) == LONG_TERM_MEMORY_LIMIT
    assert character.long_term_memory[0] == "summary 1"


def test_snapshot_is_frozen_copy(alice):
    snapshot = alice.snapshot()

    with pytest.raises(ValidationError):
        snapshot.state = CharacterState.WORKING

    alice.position.x = 0.9
    assert snapshot.position.x == 0.5


def test_proposal_action_set_is_closed():
    assert set(PROPOSAL_ACTIONS) == {"move", "work", "talk", "eat", "rest"}


def test_consolidation_result_accepts_camel_case():
    result = ConsolidationResult.model_validate(
        {"thought": "t", "isSignificant": True, "summary": "s"}
    )

    assert result.is_significant is True
