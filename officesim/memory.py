"""
Short-term to long-term memory hand-off.

Characters collect ``MemoryEvent`` records as things happen to them. Every
so often (30 wall-clock seconds by default) the ``MemoryConsolidationTrigger``
hands the current short-term memory to a ``MemoryProcessor``, which decides
whether anything in it is worth keeping and returns a one-sentence summary.

Ownership rules:
- the processor works on a deep copy of the character, never the live one
- at most one consolidation is outstanding per character
- results are applied by the simulation owner (``apply_completed``) on its own
  tick, so the processor never races the tick loop
- processor failures are logged per character and not retried; the next
  eligible tick tries again naturally
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Protocol

from .config import Config
from .errors import CollaboratorFailure
from .llm_utils import call_llm_with_retries
from .logging_utils import SimulationLogger
from .prompts import CONSOLIDATE_MEMORY, DEFAULT_PROMPTS, PromptLibrary, render_prompt
from .schemas import Character, ConsolidationResult, MemoryEvent


class MemoryProcessor(Protocol):
    """External long-term memory processing."""

    async def process_events(
        self, character: Character, events: List[MemoryEvent]
    ) -> Optional[str]:
        """Return a summary worth keeping, or ``None`` if nothing stood out."""
        ...


# ============================================================================
# LLM-backed processor
# ============================================================================

SIGNIFICANT_MAGNITUDE = 7
STRONG_LIKE = 70
STRONG_DISLIKE = 30


def is_significant_event(event: MemoryEvent, character: Character) -> bool:
    """Decide whether an event is worth sending to the LLM.

    High-impact events always are. So are events involving someone the
    character feels strongly about, and events touching their long-term goal.
    """

    if event.magnitude >= SIGNIFICANT_MAGNITUDE:
        return True

    if event.actor_id is not None and event.actor_id in character.relationships:
        score = character.relationships[event.actor_id]
        if score >= STRONG_LIKE or score <= STRONG_DISLIKE:
            return True

    goal = character.long_term_goal
    if goal is not None:
        if goal.type and goal.type in event.type:
            return True
        if goal.target and event.target and goal.target in event.target:
            return True

    return False


class LLMMemoryProcessor:
    """Summarizes significant events with a structured LLM call."""

    def __init__(
        self,
        *,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        prompt_library: Optional[PromptLibrary] = None,
        max_attempts: int = 3,
    ) -> None:
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL
        self.prompt_library = prompt_library or DEFAULT_PROMPTS
        self.max_attempts = max_attempts

    async def process_events(
        self, character: Character, events: List[MemoryEvent]
    ) -> Optional[str]:
        significant = [event for event in events if is_significant_event(event, character)]
        if not significant:
            return None

        lines = [
            f"- {event.description} ({time.strftime('%H:%M:%S', time.localtime(event.timestamp))})"
            for event in significant
        ]
        rendered = render_prompt(
            self.prompt_library.get(CONSOLIDATE_MEMORY),
            {
                "character_name": character.name,
                "personality": ", ".join(character.personality) or "no particular traits",
                "events": "\n".join(lines),
            },
        )

        result: ConsolidationResult = await call_llm_with_retries(
            system_prompt=rendered.system,
            user_prompt=rendered.user,
            llm_provider=self.llm_provider,
            llm_model=self.llm_model,
            response_model=ConsolidationResult,
            max_attempts=self.max_attempts,
        )
        if result.is_significant and result.summary.strip():
            return result.summary.strip()
        return None


# ============================================================================
# Trigger
# ============================================================================


@dataclass
class ConsolidationOutcome:
    """Finished hand-off waiting to be applied by the owner."""

    character_id: str
    events: List[MemoryEvent]
    summary: Optional[str]


class MemoryConsolidationTrigger:
    """Periodically hands short-term memory to a ``MemoryProcessor``."""

    def __init__(
        self,
        processor: MemoryProcessor,
        *,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[SimulationLogger] = None,
    ) -> None:
        self.processor = processor
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else Config.MEMORY_CONSOLIDATION_INTERVAL_SECONDS
        )
        self.clock = clock
        self.logger = logger or SimulationLogger()
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._completed: List[ConsolidationOutcome] = []

    def is_pending(self, character_id: str) -> bool:
        return character_id in self._in_flight

    def is_due(self, character: Character) -> bool:
        if not character.short_term_memory or self.is_pending(character.id):
            return False
        last = character.last_memory_consolidation
        return last is None or self.clock() - last >= self.interval_seconds

    def maybe_consolidate(self, character: Character) -> bool:
        """Start a hand-off for ``character`` if it is due.

        Must be called from inside a running event loop. Returns ``True`` when
        a hand-off was started.
        """

        if not self.is_due(character):
            return False

        snapshot = [event.model_copy() for event in character.short_term_memory]
        character.last_memory_consolidation = self.clock()
        task = asyncio.get_running_loop().create_task(
            self._run(character.model_copy(deep=True), snapshot)
        )
        self._in_flight[character.id] = task
        self.logger.llm(f"[{character.name}] Consolidating {len(snapshot)} memories...")
        return True

    async def _run(self, character: Character, events: List[MemoryEvent]) -> None:
        try:
            summary = await self.processor.process_events(character, events)
        except Exception as exc:
            failure = CollaboratorFailure(
                "memory processor",
                exc,
                character_id=character.id,
                raw_input=[event.description for event in events],
            )
            self.logger.error(str(failure))
            return
        finally:
            self._in_flight.pop(character.id, None)

        self._completed.append(
            ConsolidationOutcome(character_id=character.id, events=events, summary=summary)
        )

    def apply_completed(self, roster: Mapping[str, Character]) -> int:
        """Fold finished hand-offs into their characters.

        Consolidated events leave short-term memory; a summary, if any, joins
        long-term memory. Characters no longer in ``roster`` are skipped.
        Returns the number of outcomes applied.
        """

        applied = 0
        outcomes, self._completed = self._completed, []
        for outcome in outcomes:
            character = roster.get(outcome.character_id)
            if character is None:
                continue
            handed = {(event.timestamp, event.description) for event in outcome.events}
            character.short_term_memory = [
                event
                for event in character.short_term_memory
                if (event.timestamp, event.description) not in handed
            ]
            if outcome.summary:
                character.add_long_term_memory(outcome.summary)
                self.logger.success(f"[{character.name}] Remembered: {outcome.summary}")
            applied += 1
        return applied

    async def drain(self) -> None:
        """Wait for every outstanding hand-off to finish."""

        if self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)
