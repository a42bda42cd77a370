"""
Simulation owner: tick loop plus proposal serialization.

The ``Simulation`` is the single writer of every ``Character`` it holds.
Coordinates one tick:
1. Apply oracle proposals that arrived since the last tick (inbox); each
   accepted proposal holds its state on the timeline for a short while
2. Fold in finished memory consolidations
3. Per character: decay needs, derive mood, advance the current action,
   optionally pick a local action, check the memory trigger
4. Invoke tick listeners

Oracle round-trips run as asyncio tasks between ticks. Their answers are
posted to the inbox and only applied at step 1, so a proposal never
interleaves with a character's need decay or action advance. Answers for
characters removed in the meantime are discarded, including when a new
character has since been added under the same id.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from .actions import PROPOSAL_HOLD_SECONDS, ActionStateMachine, ActionType, make_action
from .chat import ChatSink, InMemoryChatLog
from .config import Config
from .errors import CollaboratorFailure, SimulationError
from .logging_utils import SimulationLogger
from .memory import MemoryConsolidationTrigger, MemoryProcessor
from .needs import NeedModel
from .oracle import ProposalOracle
from .policy import LocalPolicy
from .resolver import AIActionResolver, resolve_character
from .schemas import Character, CharacterSnapshot


TickListener = Callable[[int, "Simulation"], None]


@dataclass
class PendingProposal:
    character_id: str
    raw_text: str
    # The roster entry the answer was requested for; a re-added id is a new character
    character: Optional[Character] = None


class Simulation:
    """Owns the roster and drives it tick by tick.

    All collaborators are injected; sensible in-memory defaults are used for
    the chat sink, need model and action machine. Without an ``oracle`` no
    proposals are requested (``submit_proposal`` still works), and without a
    ``memory_processor`` no consolidation happens.
    """

    def __init__(
        self,
        characters: Iterable[Character] = (),
        *,
        oracle: Optional[ProposalOracle] = None,
        memory_processor: Optional[MemoryProcessor] = None,
        chat: Optional[ChatSink] = None,
        need_model: Optional[NeedModel] = None,
        action_machine: Optional[ActionStateMachine] = None,
        policy: Optional[LocalPolicy] = None,
        prompt_cooldown_seconds: Optional[float] = None,
        memory_interval_seconds: Optional[float] = None,
        start_hour: float = 9.0,
        clock: Callable[[], float] = time.time,
        logger: Optional[SimulationLogger] = None,
        tick_listeners: Optional[List[TickListener]] = None,
    ) -> None:
        self.logger = logger or SimulationLogger()
        self.characters: Dict[str, Character] = {}
        for character in characters:
            self.add_character(character)

        self.oracle = oracle
        self.chat = chat if chat is not None else InMemoryChatLog()
        self.need_model = need_model or NeedModel()
        self.action_machine = action_machine or ActionStateMachine()
        self.policy = policy
        self.resolver = AIActionResolver(
            chat=self.chat, need_model=self.need_model, logger=self.logger
        )
        self.memory_trigger: Optional[MemoryConsolidationTrigger] = None
        if memory_processor is not None:
            self.memory_trigger = MemoryConsolidationTrigger(
                memory_processor,
                interval_seconds=memory_interval_seconds,
                clock=clock,
                logger=self.logger,
            )

        self.prompt_cooldown_seconds = (
            prompt_cooldown_seconds
            if prompt_cooldown_seconds is not None
            else Config.PROMPT_COOLDOWN_SECONDS
        )
        self.start_hour = start_hour
        self.clock = clock
        self.tick_listeners = tick_listeners or []

        self.tick_count = 0
        self.elapsed_seconds = 0.0
        self._inbox: List[PendingProposal] = []
        self._requests_in_flight: Set[str] = set()
        self._request_tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Roster
    # ------------------------------------------------------------------

    def add_character(self, character: Character) -> None:
        if character.id in self.characters:
            raise ValueError(f"Character '{character.id}' is already in the simulation")
        self.characters[character.id] = character

    def remove_character(self, character_id: str) -> Optional[Character]:
        """Remove a character. Proposals still in flight for it become no-ops."""

        return self.characters.pop(character_id, None)

    def get_character(self, name_or_id: str) -> Optional[Character]:
        return resolve_character(name_or_id, self.characters)

    def snapshots(self) -> List[CharacterSnapshot]:
        return [character.snapshot() for character in self.characters.values()]

    @property
    def hour(self) -> float:
        """Simulated time of day on a 24h clock."""

        return (self.start_hour + self.elapsed_seconds / 3600.0) % 24

    # ------------------------------------------------------------------
    # Proposal path
    # ------------------------------------------------------------------

    def submit_proposal(self, character_id: str, raw_text: str) -> None:
        """Queue raw proposal text; it is applied at the start of the next tick.

        The answer is bound to the character currently holding ``character_id``.
        If that character is removed before the next tick, the answer is dropped
        even when another character is added under the same id.
        """

        self._queue_proposal(self.characters.get(character_id), character_id, raw_text)

    def _queue_proposal(
        self, character: Optional[Character], character_id: str, raw_text: str
    ) -> None:
        self._inbox.append(
            PendingProposal(character_id=character_id, raw_text=raw_text, character=character)
        )

    def can_request(self, character: Character) -> bool:
        """Players, disabled characters, characters in cooldown and
        characters with a request already in flight are skipped."""

        if self.oracle is None or character.is_player or not character.enabled:
            return False
        if character.id in self._requests_in_flight:
            return False
        last = character.last_prompt_time
        return last is None or self.elapsed_seconds - last >= self.prompt_cooldown_seconds

    async def request_proposal(self, character_id: str) -> bool:
        """Ask the oracle for ``character_id`` and post the answer to the inbox.

        Returns ``True`` when an answer was queued. Oracle failures are
        logged as ``CollaboratorFailure`` and leave the character untouched.
        """

        character = self.characters.get(character_id)
        if character is None or not self.can_request(character):
            return False

        prompt = self.resolver.generate_prompt(character, self.characters.values()).combined()
        # Cooldown runs on simulated time, like the rest of the tick loop.
        character.last_prompt_time = self.elapsed_seconds
        character.prompt_count += 1
        self._requests_in_flight.add(character_id)
        self.logger.llm(f"[{character.name}] Requesting proposal...")
        try:
            raw_text = await self.oracle.request(character_id, prompt)
        except Exception as exc:
            failure = CollaboratorFailure(
                "oracle", exc, character_id=character_id, raw_input=prompt
            )
            self.logger.error(str(failure))
            return False
        finally:
            self._requests_in_flight.discard(character_id)

        self._queue_proposal(character, character_id, raw_text)
        return True

    def start_proposal_requests(self) -> List[asyncio.Task]:
        """Spawn a request task for every eligible character."""

        started: List[asyncio.Task] = []
        for character in list(self.characters.values()):
            if not self.can_request(character):
                continue
            task = asyncio.get_running_loop().create_task(self.request_proposal(character.id))
            self._request_tasks.add(task)
            task.add_done_callback(self._request_tasks.discard)
            started.append(task)
        return started

    def _apply_proposals(self) -> int:
        applied = 0
        pending, self._inbox = self._inbox, []
        for item in pending:
            character = self.characters.get(item.character_id)
            if character is None or character is not item.character:
                self.logger.info(f"Discarding proposal for removed character '{item.character_id}'")
                continue
            try:
                proposal = self.resolver.resolve_proposal(character, item.raw_text, self.characters)
            except SimulationError as exc:
                # Rejected proposals leave the character as it was
                self.logger.error(str(exc))
                continue
            # The proposal supersedes any local action; the hold keeps its
            # state visible and then hands the character back to idle.
            self.action_machine.start(
                character,
                make_action(
                    ActionType.PROPOSED,
                    PROPOSAL_HOLD_SECONDS[proposal.action],
                    proposal=proposal.action,
                ),
            )
            applied += 1
        return applied

    # ------------------------------------------------------------------
    # Tick loop
    # ------------------------------------------------------------------

    async def step(self, elapsed_seconds: float) -> None:
        """Advance every character by ``elapsed_seconds`` of simulated time."""

        self._apply_proposals()
        if self.memory_trigger is not None:
            self.memory_trigger.apply_completed(self.characters)

        for character in list(self.characters.values()):
            self.need_model.update(character, elapsed_seconds)

            completed = self.action_machine.advance(character, elapsed_seconds)
            if completed is not None:
                self.logger.deterministic(f"[{character.name}] Finished {completed.type}")

            if (
                self.policy is not None
                and self.action_machine.is_idle(character)
            ):
                action = self.policy.choose(character, self.hour)
                self.action_machine.start(character, action)

            if self.memory_trigger is not None:
                self.memory_trigger.maybe_consolidate(character)

        self.tick_count += 1
        self.elapsed_seconds += max(0.0, elapsed_seconds)

        for listener in self.tick_listeners:
            try:
                listener(self.tick_count, self)
            except Exception as exc:
                self.logger.error(f"Tick listener failed: {exc}")

    async def run(
        self,
        num_ticks: int,
        tick_seconds: Optional[float] = None,
        *,
        realtime: bool = False,
    ) -> Dict[str, Any]:
        """Run ``num_ticks`` ticks of ``tick_seconds`` simulated seconds each.

        With ``realtime=True`` the loop sleeps for the tick duration between
        ticks; otherwise it only yields so in-flight requests can progress.
        In-flight work is awaited before returning.
        """

        tick_seconds = tick_seconds if tick_seconds is not None else Config.TICK_DURATION_SECONDS
        self.logger.info(
            f"Starting simulation: {len(self.characters)} characters, {num_ticks} ticks"
        )
        try:
            for _ in range(num_ticks):
                self.start_proposal_requests()
                await self.step(tick_seconds)
                self.logger.info(f"=== Tick {self.tick_count} (hour {self.hour:.2f}) ===")
                await asyncio.sleep(tick_seconds if realtime else 0)
        finally:
            await self.shutdown()

        return {"ticks": self.tick_count, "snapshots": self.snapshots()}

    async def shutdown(self) -> None:
        """Wait for in-flight requests and consolidations and apply their results."""

        if self._request_tasks:
            await asyncio.gather(*list(self._request_tasks), return_exceptions=True)
        if self.memory_trigger is not None:
            await self.memory_trigger.drain()
            self.memory_trigger.apply_completed(self.characters)
        self._apply_proposals()
