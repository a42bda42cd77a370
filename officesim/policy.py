"""Local behaviour selection for characters without a pending proposal.

The policy only looks at needs and the office schedule; it never calls the
oracle. It picks one action for a character whose timeline is empty and lets
the action state machine run it.
"""

from __future__ import annotations

from typing import Optional

from .actions import ActionType, make_action
from .config import Config
from .schedule import is_within_working_hours
from .schemas import Character, CharacterAction


# Below this a need is urgent enough to interrupt work.
URGENT_NEED = 4.0


class LocalPolicy:
    """Needs-first, schedule-aware action choice."""

    def __init__(self, *, office_type: Optional[str] = None) -> None:
        self.office_type = office_type or Config.OFFICE_TYPE

    def available_actions(self, character: Character, hour: float) -> list[str]:
        """Every action type currently on offer, most urgent first."""

        offered: list[str] = []
        if character.needs.get("energy", 10.0) < URGENT_NEED:
            offered.append(ActionType.USE_COFFEE_MACHINE)
        if character.needs.get("hunger", 10.0) < URGENT_NEED:
            offered.append(ActionType.EAT_SNACK)
        if character.needs.get("social", 10.0) < URGENT_NEED:
            offered.append(ActionType.SOCIALIZE)
        if is_within_working_hours(character, hour, self.office_type):
            offered.append(ActionType.USE_COMPUTER)
        offered.append(ActionType.IDLE)
        return offered

    def choose(self, character: Character, hour: float) -> CharacterAction:
        return make_action(self.available_actions(character, hour)[0])
