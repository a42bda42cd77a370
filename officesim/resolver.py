"""Bridge from oracle proposals to character state.

The oracle answers with one JSON object::

    {"action": "move", "params": {"x": 0.4, "y": 0.7}, "reason": "..."}

``AIActionResolver.resolve_proposal`` turns that text into exactly one
mutation of the character, or into an exception with no mutation at all:

1. parse the text                      -> ``MalformedProposal``
2. check ``action`` against the closed set -> ``UnknownAction``
3. validate the action's params (and resolve a talk target) -> ``InvalidParams``
4. apply the effects

Steps 1-3 never touch the character. Step 4 only performs operations that
cannot fail, with the single exception of the chat sink used by ``talk``,
which is called before any field is written.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from .chat import ChatSink, InMemoryChatLog
from .config import Config
from .errors import CollaboratorFailure, InvalidParams, MalformedProposal, UnknownAction
from .logging_utils import SimulationLogger
from .needs import NeedModel, adjust_need
from .prompts import DEFAULT_PROMPTS, PROPOSE_ACTION, PromptLibrary, RenderedPrompt, render_prompt
from .schemas import (
    PROPOSAL_ACTIONS,
    PROPOSAL_ADAPTER,
    Character,
    CharacterState,
    EatProposal,
    MemoryEvent,
    MoveProposal,
    Position,
    Proposal,
    RestProposal,
    TalkProposal,
    WorkProposal,
)


DEFAULT_TASK = "General work"
WORK_PROGRESS_STEP = 10.0
TASK_COMPLETE_AT = 100.0
# Satisfaction restored on the canonical 0-10 scale.
EAT_HUNGER_RESTORE = 5.0
REST_ENERGY_RESTORE = 3.0


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding Markdown code fence, which models like to add."""

    stripped = text.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        body = stripped[3:-3]
        # Drop an optional language tag on the opening fence line
        first_newline = body.find("\n")
        if first_newline != -1 and body[:first_newline].strip().isalpha():
            body = body[first_newline + 1:]
        return body.strip()
    return stripped


def _format_validation_issues(error: ValidationError) -> str:
    issues: List[str] = []
    for err in error.errors(include_url=False):
        # The first loc entry is the union tag; it adds nothing for readers
        loc_parts = [str(part) for part in err.get("loc", [])][1:]
        loc = ".".join(loc_parts) or "root"
        issues.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(issues) or "params did not match the expected schema"


def resolve_character(name_or_id: str, roster: Mapping[str, Character]) -> Optional[Character]:
    """Find a character by id, falling back to display name.

    Oracles naturally refer to colleagues by name ("Dana Lee") while the roster
    is keyed by id ("dana").
    """

    if name_or_id in roster:
        return roster[name_or_id]
    for candidate in roster.values():
        if candidate.name == name_or_id:
            return candidate
    return None


def parse_proposal(raw_text: Any, *, character_id: Optional[str] = None) -> Proposal:
    """Turn oracle text into a validated proposal variant.

    Raises ``MalformedProposal``, ``UnknownAction`` or ``InvalidParams``.
    Talk targets are not checked here because that needs the roster.
    """

    if not isinstance(raw_text, str) or not raw_text.strip():
        raise MalformedProposal(
            "empty or non-text proposal", character_id=character_id, raw_input=raw_text
        )

    try:
        data = json.loads(_strip_code_fence(raw_text))
    except json.JSONDecodeError as exc:
        raise MalformedProposal(
            f"not valid JSON ({exc.msg})", character_id=character_id, raw_input=raw_text
        ) from exc

    if not isinstance(data, dict):
        raise MalformedProposal(
            "proposal must be a JSON object", character_id=character_id, raw_input=raw_text
        )

    action = data.get("action")
    if not isinstance(action, str) or not action:
        raise MalformedProposal(
            "missing 'action' field", character_id=character_id, raw_input=raw_text
        )
    if action not in PROPOSAL_ACTIONS:
        raise UnknownAction(action, character_id=character_id, raw_input=raw_text)

    if data.get("params") is None:
        data.pop("params", None)
    try:
        return PROPOSAL_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise InvalidParams(
            action,
            _format_validation_issues(exc),
            character_id=character_id,
            raw_input=raw_text,
        ) from exc


class AIActionResolver:
    """Validates oracle proposals and applies them to a character."""

    def __init__(
        self,
        *,
        chat: Optional[ChatSink] = None,
        need_model: Optional[NeedModel] = None,
        prompt_library: Optional[PromptLibrary] = None,
        proximity_radius: Optional[float] = None,
        logger: Optional[SimulationLogger] = None,
    ) -> None:
        self.chat = chat if chat is not None else InMemoryChatLog()
        self.need_model = need_model or NeedModel()
        self.prompt_library = prompt_library or DEFAULT_PROMPTS
        self.proximity_radius = (
            proximity_radius if proximity_radius is not None else Config.PROXIMITY_RADIUS
        )
        self.logger = logger or SimulationLogger()

    # ------------------------------------------------------------------
    # Prompt side (read-only)
    # ------------------------------------------------------------------

    def get_situation_description(
        self, character: Character, roster: Iterable[Character]
    ) -> str:
        """Short natural-language summary of where the character is.

        Lists colleagues closer than the proximity radius and the task in
        progress. Pure: reads only.
        """

        nearby = [
            other.name
            for other in roster
            if other.id != character.id
            and character.position.distance_to(other.position) < self.proximity_radius
        ]

        desc = f"Located at ({character.position.x:.2f}, {character.position.y:.2f})"
        if nearby:
            desc += f". Nearby: {', '.join(nearby)}"
        if character.current_task:
            desc += f". Currently working on: {character.current_task}"
        return desc

    def generate_prompt(
        self, character: Character, roster: Iterable[Character]
    ) -> RenderedPrompt:
        """Render the proposal prompt for ``character``."""

        needs = {need: round(value, 2) for need, value in character.needs.items()}
        values = {
            "character_name": character.name,
            "job_role": character.job_role,
            "mood": character.mood.value,
            "needs": json.dumps(needs),
            "personality": ", ".join(character.personality) or "none",
            "situation": self.get_situation_description(character, roster),
        }
        return render_prompt(self.prompt_library.get(PROPOSE_ACTION), values)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_proposal(
        self,
        character: Character,
        raw_text: Any,
        roster: Mapping[str, Character],
    ) -> Proposal:
        """Validate ``raw_text`` and apply it to ``character``.

        Returns the applied proposal. On any error the character is left
        exactly as it was and the error propagates to the caller.
        """

        proposal = parse_proposal(raw_text, character_id=character.id)

        if isinstance(proposal, MoveProposal):
            self._apply_move(character, proposal)
        elif isinstance(proposal, WorkProposal):
            self._apply_work(character, proposal)
        elif isinstance(proposal, TalkProposal):
            self._apply_talk(character, proposal, roster, raw_text)
        elif isinstance(proposal, EatProposal):
            self._apply_eat(character, proposal)
        elif isinstance(proposal, RestProposal):
            self._apply_rest(character, proposal)

        self.logger.success(f"[{character.name}] {proposal.action}: {proposal.reason or 'no reason given'}")
        return proposal

    def _apply_move(self, character: Character, proposal: MoveProposal) -> None:
        # Movement itself belongs to whoever integrates target_position
        character.target_position = Position.clamped(proposal.params.x, proposal.params.y)
        character.state = CharacterState.WALKING

    def _apply_work(self, character: Character, proposal: WorkProposal) -> None:
        task = (proposal.params.task or "").strip() or DEFAULT_TASK
        if character.current_task != task:
            character.current_task = task
            character.task_progress = 0.0
        character.state = CharacterState.WORKING
        character.task_progress += WORK_PROGRESS_STEP

        if character.task_progress >= TASK_COMPLETE_AT:
            self._complete_task(character, task)

    def _complete_task(self, character: Character, task: str) -> None:
        character.tasks_completed += 1
        character.current_task = None
        character.task_progress = 0.0
        character.state = CharacterState.IDLE
        character.remember(
            MemoryEvent(description=f"Finished the task '{task}'", type="task_completed", magnitude=6)
        )

    def _apply_talk(
        self,
        character: Character,
        proposal: TalkProposal,
        roster: Mapping[str, Character],
        raw_text: Any,
    ) -> None:
        target = resolve_character(proposal.params.character_id, roster)
        if target is None:
            raise InvalidParams(
                "talk",
                f"character not found: {proposal.params.character_id}",
                character_id=character.id,
                raw_input=raw_text,
            )
        if target.id == character.id:
            raise InvalidParams(
                "talk", "cannot talk to oneself", character_id=character.id, raw_input=raw_text
            )

        # The sink is the only step that can fail; nothing is written before it.
        try:
            self.chat.add_message(character, f"To {target.name}: {proposal.params.message}")
        except Exception as exc:
            raise CollaboratorFailure("chat", exc, character_id=character.id, raw_input=raw_text) from exc

        character.state = CharacterState.TALKING
        character.remember(
            MemoryEvent(
                description=f"Said to {target.name}: {proposal.params.message}",
                type="communication",
                actor_id=target.id,
                target=target.name,
            )
        )

    def _apply_eat(self, character: Character, proposal: EatProposal) -> None:
        adjust_need(character, "hunger", EAT_HUNGER_RESTORE)
        character.state = CharacterState.EATING
        self.need_model.derive_mood(character)

    def _apply_rest(self, character: Character, proposal: RestProposal) -> None:
        adjust_need(character, "energy", REST_ENERGY_RESTORE)
        character.state = CharacterState.RESTING
        self.need_model.derive_mood(character)
