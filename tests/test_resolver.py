"""Tests for proposal validation and the five action handlers."""

import json

import pytest

from officesim.chat import InMemoryChatLog
from officesim.errors import (
    CollaboratorFailure,
    InvalidParams,
    MalformedProposal,
    ProposalError,
    UnknownAction,
)
from officesim.resolver import (
    DEFAULT_TASK,
    EAT_HUNGER_RESTORE,
    AIActionResolver,
    parse_proposal,
)
from officesim.schemas import (
    Character,
    CharacterState,
    MoveProposal,
    Mood,
    Position,
    TalkProposal,
)


def _proposal(action, params=None, reason="because"):
    payload = {"action": action, "reason": reason}
    if params is not None:
        payload["params"] = params
    return json.dumps(payload)


@pytest.fixture
def chat() -> InMemoryChatLog:
    return InMemoryChatLog()


@pytest.fixture
def resolver(chat, logger) -> AIActionResolver:
    return AIActionResolver(chat=chat, logger=logger)


# ---------------------------------------------------------------------------
# move
# ---------------------------------------------------------------------------


def test_move_clamps_and_changes_nothing_else(resolver, alice, roster):
    before = alice.model_dump()

    result = resolver.resolve_proposal(alice, _proposal("move", {"x": 1.5, "y": -0.2}), roster)

    assert isinstance(result, MoveProposal)
    assert alice.target_position == Position(x=1.0, y=0.0)
    assert alice.state is CharacterState.WALKING
    after = alice.model_dump()
    changed = {key for key in after if after[key] != before[key]}
    assert changed == {"target_position", "state"}
    # The move only sets a destination
    assert alice.position == Position(x=0.5, y=0.5)


def test_move_accepts_zero_coordinates(resolver, alice, roster):
    resolver.resolve_proposal(alice, _proposal("move", {"x": 0, "y": 0}), roster)

    assert alice.target_position == Position(x=0.0, y=0.0)


@pytest.mark.parametrize(
    "params",
    [{"x": 0.3}, {"y": 0.3}, {}, {"x": "left", "y": 0.2}],
)
def test_move_without_both_coordinates_is_invalid(resolver, alice, roster, params):
    before = alice.model_dump()

    with pytest.raises(InvalidParams) as excinfo:
        resolver.resolve_proposal(alice, _proposal("move", params), roster)

    assert excinfo.value.character_id == "alice"
    assert alice.model_dump() == before


# ---------------------------------------------------------------------------
# work
# ---------------------------------------------------------------------------


def test_work_accumulates_and_completes_exactly_once(resolver, alice, roster):
    text = _proposal("work", {"task": "Report"})

    for call in range(1, 10):
        resolver.resolve_proposal(alice, text, roster)
        assert alice.task_progress == pytest.approx(10 * call)
        assert alice.current_task == "Report"
        assert alice.state is CharacterState.WORKING
        assert alice.tasks_completed == 0

    resolver.resolve_proposal(alice, text, roster)

    assert alice.tasks_completed == 1
    assert alice.current_task is None
    assert alice.task_progress == 0
    assert alice.state is CharacterState.IDLE
    assert alice.short_term_memory[-1].type == "task_completed"


def test_work_defaults_task_name(resolver, alice, roster):
    resolver.resolve_proposal(alice, _proposal("work"), roster)
    assert alice.current_task == DEFAULT_TASK

    resolver.resolve_proposal(alice, _proposal("work", {"task": "  "}), roster)
    assert alice.current_task == DEFAULT_TASK
    assert alice.task_progress == pytest.approx(20)


def test_work_on_a_new_task_starts_from_zero(resolver, alice, roster):
    resolver.resolve_proposal(alice, _proposal("work", {"task": "Report"}), roster)
    resolver.resolve_proposal(alice, _proposal("work", {"task": "Report"}), roster)

    resolver.resolve_proposal(alice, _proposal("work", {"task": "Budget"}), roster)

    assert alice.current_task == "Budget"
    assert alice.task_progress == pytest.approx(10)


# ---------------------------------------------------------------------------
# talk
# ---------------------------------------------------------------------------


def test_talk_to_missing_character_leaves_state_untouched(resolver, chat, alice, roster):
    before = alice.model_dump()

    with pytest.raises(InvalidParams) as excinfo:
        resolver.resolve_proposal(
            alice, _proposal("talk", {"characterId": "ghost", "message": "hello?"}), roster
        )

    assert "ghost" in str(excinfo.value)
    assert alice.state is CharacterState.IDLE
    assert alice.needs == before["needs"]
    assert alice.position.model_dump() == before["position"]
    assert alice.model_dump() == before
    assert chat.messages == []


def test_talk_emits_chat_message(resolver, chat, alice, bob, roster):
    bob_before = bob.model_dump()

    result = resolver.resolve_proposal(
        alice, _proposal("talk", {"character_id": "bob", "message": "Coffee later?"}), roster
    )

    assert isinstance(result, TalkProposal)
    assert alice.state is CharacterState.TALKING
    assert [(m.sender_id, m.message) for m in chat.messages] == [("alice", "To Bob Tanaka: Coffee later?")]
    assert alice.short_term_memory[-1].actor_id == "bob"
    # The target is only read
    assert bob.model_dump() == bob_before


def test_talk_resolves_target_by_display_name(resolver, chat, alice, roster):
    resolver.resolve_proposal(
        alice, _proposal("talk", {"character": "Bob Tanaka", "message": "Hi"}), roster
    )

    assert chat.messages[0].message == "To Bob Tanaka: Hi"


@pytest.mark.parametrize(
    "params",
    [{"character_id": "bob"}, {"character_id": "bob", "message": "   "}, {"message": "hi"}],
)
def test_talk_requires_message_and_target(resolver, alice, roster, params):
    before = alice.model_dump()

    with pytest.raises(InvalidParams):
        resolver.resolve_proposal(alice, _proposal("talk", params), roster)

    assert alice.model_dump() == before


def test_talk_to_self_is_invalid(resolver, alice, roster):
    with pytest.raises(InvalidParams):
        resolver.resolve_proposal(
            alice, _proposal("talk", {"character_id": "alice", "message": "hmm"}), roster
        )


def test_talk_chat_failure_is_collaborator_failure(alice, roster, logger):
    class BrokenChat:
        def add_message(self, sender, message):
            raise ConnectionError("chat offline")

    resolver = AIActionResolver(chat=BrokenChat(), logger=logger)
    before = alice.model_dump()

    with pytest.raises(CollaboratorFailure) as excinfo:
        resolver.resolve_proposal(
            alice, _proposal("talk", {"character_id": "bob", "message": "hi"}), roster
        )

    assert isinstance(excinfo.value.underlying, ConnectionError)
    assert alice.model_dump() == before


# ---------------------------------------------------------------------------
# eat / rest
# ---------------------------------------------------------------------------


def test_eat_restores_hunger_and_recomputes_mood(resolver, roster):
    character = Character(id="carol", needs={"energy": 8, "hunger": 2})
    character.mood = Mood.HUNGRY

    resolver.resolve_proposal(character, _proposal("eat", None), {**roster, "carol": character})

    assert character.needs["hunger"] == pytest.approx(2 + EAT_HUNGER_RESTORE)
    assert character.state is CharacterState.EATING
    assert character.mood is Mood.NEUTRAL


def test_eat_and_rest_cap_at_ten(resolver, roster):
    character = Character(id="carol", needs={"energy": 9, "hunger": 9})

    resolver.resolve_proposal(character, _proposal("eat", {}), roster)
    resolver.resolve_proposal(character, '{"action": "rest", "params": null}', roster)

    assert character.needs["hunger"] == 10.0
    assert character.needs["energy"] == 10.0
    assert character.state is CharacterState.RESTING


# ---------------------------------------------------------------------------
# Parsing failures
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    ["", "not json at all", "[1, 2, 3]", '{"params": {}}', '{"action": 5}', None],
)
def test_malformed_proposals(text):
    with pytest.raises(MalformedProposal):
        parse_proposal(text, character_id="alice")


def test_unknown_action_is_reported_with_its_name(resolver, alice, roster):
    before = alice.model_dump()

    with pytest.raises(UnknownAction) as excinfo:
        resolver.resolve_proposal(alice, _proposal("dance"), roster)

    assert excinfo.value.action == "dance"
    assert alice.model_dump() == before


def test_same_malformed_text_twice_gives_same_error_and_no_drift(resolver, alice, roster):
    text = '{"action": "move", "params": {"x": 0.2'
    before = alice.model_dump()
    kinds = []

    for _ in range(2):
        with pytest.raises(ProposalError) as excinfo:
            resolver.resolve_proposal(alice, text, roster)
        kinds.append(type(excinfo.value))

    assert kinds == [MalformedProposal, MalformedProposal]
    assert alice.model_dump() == before


def test_code_fenced_proposal_is_accepted():
    text = '```json\n{"action": "rest", "params": {}, "reason": "tired"}\n```'

    proposal = parse_proposal(text)

    assert proposal.action == "rest"
    assert proposal.reason == "tired"


# ---------------------------------------------------------------------------
# Situation description and prompt
# ---------------------------------------------------------------------------


def test_situation_lists_only_nearby_characters(resolver, alice, bob):
    far = Character(id="dan", name="Dan Okafor", position=Position(x=0.95, y=0.95))
    alice.current_task = "Code review"

    desc = resolver.get_situation_description(alice, [alice, bob, far])

    assert desc == "Located at (0.50, 0.50). Nearby: Bob Tanaka. Currently working on: Code review"


def test_situation_without_neighbours_or_task(resolver, alice):
    assert resolver.get_situation_description(alice, [alice]) == "Located at (0.50, 0.50)"


def test_generate_prompt_includes_character_context(resolver, alice, bob):
    prompt = resolver.generate_prompt(alice, [alice, bob])

    assert "You are Alice Moreau, a Senior Coder" in prompt.system
    assert "Current mood: Neutral" in prompt.user
    assert '"energy": 8.0' in prompt.user
    assert "Analytical, Introverted" in prompt.user
    assert "Nearby: Bob Tanaka" in prompt.user
    assert "{{" not in prompt.combined()
