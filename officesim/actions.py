"""Current-action / action-queue state machine.

Each character runs at most one action at a time. The life cycle is::

    NoAction --start/pop--> Running --elapsed >= duration--> Completed
                               \\--start() while running--> Replaced

Every tick adds the elapsed seconds to the running action. While it runs,
per-tick effects apply (the computer advances the assigned task and wears the
character down). When it finishes, the one-time completion effect applies and
the next queued action is pulled immediately.

Validation is not done here: only actions that the resolver or the local
policy already accepted reach this machine.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from .needs import adjust_need
from .schemas import Character, CharacterAction, CharacterState


class ActionType:
    """Names of the locally known action types.

    Action types are open strings on ``CharacterAction``; the names below are
    the ones that carry effects.
    """

    MOVE_TO = "MOVE_TO"
    USE_COFFEE_MACHINE = "USE_COFFEE_MACHINE"
    USE_COMPUTER = "USE_COMPUTER"
    EAT_SNACK = "EAT_SNACK"
    SOCIALIZE = "SOCIALIZE"
    IDLE = "IDLE"
    # Timeline entry that holds the state set by an accepted oracle proposal
    PROPOSED = "PROPOSED"


# Default durations in simulated seconds, used by ``make_action``.
DEFAULT_DURATIONS: Dict[str, float] = {
    ActionType.MOVE_TO: 5.0,
    ActionType.USE_COFFEE_MACHINE: 30.0,
    ActionType.USE_COMPUTER: 120.0,
    ActionType.EAT_SNACK: 60.0,
    ActionType.SOCIALIZE: 45.0,
    ActionType.IDLE: 10.0,
}

# How long the state set by an accepted proposal is kept before the character
# returns to idle, keyed by proposal action.
PROPOSAL_HOLD_SECONDS: Dict[str, float] = {
    "move": 5.0,
    "work": 30.0,
    "talk": 10.0,
    "eat": 60.0,
    "rest": 30.0,
}

# Visible state while an action runs.
ACTION_STATES: Dict[str, CharacterState] = {
    ActionType.MOVE_TO: CharacterState.WALKING,
    ActionType.USE_COFFEE_MACHINE: CharacterState.RESTING,
    ActionType.USE_COMPUTER: CharacterState.WORKING,
    ActionType.EAT_SNACK: CharacterState.EATING,
    ActionType.SOCIALIZE: CharacterState.TALKING,
    ActionType.IDLE: CharacterState.IDLE,
}

COFFEE_ENERGY_PER_TICK = 0.5
COFFEE_ENERGY_ON_COMPLETE = 3.0
COMPUTER_PROGRESS_PER_COMPETENCE = 0.1
COMPUTER_ENERGY_PER_TICK = 0.05
COMPUTER_STRESS_PER_TICK = 0.03
SNACK_HUNGER_ON_COMPLETE = 5.0
SOCIALIZE_SOCIAL_ON_COMPLETE = 2.0


def make_action(action_type: str, duration: Optional[float] = None, **params) -> CharacterAction:
    """Build a fresh action, falling back to the default duration for its type."""

    if duration is None:
        duration = DEFAULT_DURATIONS.get(action_type, 0.0)
    return CharacterAction(type=action_type, duration=duration, params=params)


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------


def _coffee_tick(character: Character, action: CharacterAction) -> None:
    adjust_need(character, "energy", COFFEE_ENERGY_PER_TICK)


def _computer_tick(character: Character, action: CharacterAction) -> None:
    task = character.assigned_task
    if task is not None:
        gained = COMPUTER_PROGRESS_PER_COMPETENCE * character.skills.competence
        task.progress = min(100.0, task.progress + gained)
    adjust_need(character, "energy", -COMPUTER_ENERGY_PER_TICK)
    adjust_need(character, "stress", COMPUTER_STRESS_PER_TICK)


def _move_complete(character: Character, action: CharacterAction) -> None:
    character.path = []


def _coffee_complete(character: Character, action: CharacterAction) -> None:
    adjust_need(character, "energy", COFFEE_ENERGY_ON_COMPLETE)


def _snack_complete(character: Character, action: CharacterAction) -> None:
    adjust_need(character, "hunger", SNACK_HUNGER_ON_COMPLETE)


def _socialize_complete(character: Character, action: CharacterAction) -> None:
    adjust_need(character, "social", SOCIALIZE_SOCIAL_ON_COMPLETE)


Effect = Callable[[Character, CharacterAction], None]

TICK_EFFECTS: Dict[str, Effect] = {
    ActionType.USE_COFFEE_MACHINE: _coffee_tick,
    ActionType.USE_COMPUTER: _computer_tick,
}

COMPLETION_EFFECTS: Dict[str, Effect] = {
    ActionType.MOVE_TO: _move_complete,
    ActionType.USE_COFFEE_MACHINE: _coffee_complete,
    ActionType.EAT_SNACK: _snack_complete,
    ActionType.SOCIALIZE: _socialize_complete,
}


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class ActionStateMachine:
    """Advances a character's current action and drains its queue.

    The effect tables can be extended per instance, e.g. a scenario adding a
    ``USE_PRINTER`` action registers its own tick/completion effects.
    """

    def __init__(
        self,
        *,
        tick_effects: Optional[Dict[str, Effect]] = None,
        completion_effects: Optional[Dict[str, Effect]] = None,
    ) -> None:
        self.tick_effects: Dict[str, Effect] = dict(TICK_EFFECTS)
        self.completion_effects: Dict[str, Effect] = dict(COMPLETION_EFFECTS)
        if tick_effects:
            self.tick_effects.update(tick_effects)
        if completion_effects:
            self.completion_effects.update(completion_effects)

    # Queue management -----------------------------------------------------

    def enqueue(self, character: Character, action: CharacterAction) -> None:
        """Append an action to the back of the queue."""

        character.action_queue.append(action)

    def start(self, character: Character, action: CharacterAction) -> Optional[CharacterAction]:
        """Make ``action`` current right away.

        A running action is replaced without its completion effect and is
        returned to the caller. The queue is left as it is.
        """

        replaced = character.current_action
        self._begin(character, action)
        return replaced

    def clear(self, character: Character) -> None:
        """Drop the current action and every queued one."""

        character.current_action = None
        character.action_queue.clear()
        character.state = CharacterState.IDLE

    def is_idle(self, character: Character) -> bool:
        return character.current_action is None and not character.action_queue

    # Tick -----------------------------------------------------------------

    def advance(self, character: Character, elapsed_seconds: float) -> Optional[CharacterAction]:
        """Advance one tick. Returns the action that completed, if any."""

        completed: Optional[CharacterAction] = None
        action = character.current_action

        if action is not None:
            action.elapsed_time += max(0.0, elapsed_seconds)
            if action.finished:
                completion = self.completion_effects.get(action.type)
                if completion is not None:
                    completion(character, action)
                character.current_action = None
                completed = action
            else:
                effect = self.tick_effects.get(action.type)
                if effect is not None:
                    effect(character, action)

        if character.current_action is None:
            if character.action_queue:
                self._begin(character, character.action_queue.pop(0))
            elif completed is not None:
                character.state = CharacterState.IDLE

        return completed

    def _begin(self, character: Character, action: CharacterAction) -> None:
        action.elapsed_time = 0.0
        character.current_action = action
        state = ACTION_STATES.get(action.type)
        if state is not None:
            character.state = state
