"""
Pydantic schemas for the office character simulation.

All data structures shared between the need model, the action state machine,
the proposal resolver and the memory trigger are defined here.

Design Philosophy:
- ``Character`` is the single mutable record per simulated office worker; only
  the simulation owner mutates it
- Needs live on one canonical 0-10 scale (see ``NEED_MIN``/``NEED_MAX``)
- Oracle proposals are a closed, discriminated union keyed on ``action`` so the
  valid action set is fixed by the type rather than by a lookup table
- ``CharacterSnapshot`` is the read-only view handed to renderers
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    field_validator,
    model_validator,
)


# ============================================================================
# Needs, Mood, State
# ============================================================================

NEED_MIN = 0.0
NEED_MAX = 10.0

# Recognized needs. Every need except stress is a satisfaction level (low is
# bad); stress is the other way round (high is bad).
NEED_NAMES = ("energy", "hunger", "social", "comfort", "stress")

DEFAULT_NEEDS: Dict[str, float] = {
    "energy": 8.0,
    "hunger": 8.0,
    "social": 8.0,
    "comfort": 8.0,
    "stress": 2.0,
}

SHORT_TERM_MEMORY_LIMIT = 20
LONG_TERM_MEMORY_LIMIT = 100


class Mood(str, Enum):
    """Discrete mood label derived from needs."""

    TIRED = "Tired"
    HUNGRY = "Hungry"
    STRESSED = "Stressed"
    LONELY = "Lonely"
    NEUTRAL = "Neutral"


class CharacterState(str, Enum):
    """What the character is visibly doing."""

    IDLE = "idle"
    WALKING = "walking"
    WORKING = "working"
    TALKING = "talking"
    EATING = "eating"
    RESTING = "resting"


# ============================================================================
# Character Building Blocks
# ============================================================================


class Position(BaseModel):
    """2D coordinate in normalized [0, 1] office space."""

    x: float = Field(..., ge=0.0, le=1.0)
    y: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def clamped(cls, x: float, y: float) -> "Position":
        """Build a position, pulling out-of-range coordinates onto the border."""

        return cls(x=min(1.0, max(0.0, x)), y=min(1.0, max(0.0, y)))

    def distance_to(self, other: "Position") -> float:
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


class Skills(BaseModel):
    """Skill ratings on a 0-10 scale. Competence scales task progress."""

    competence: float = Field(5.0, ge=0.0, le=10.0)
    laziness: float = Field(5.0, ge=0.0, le=10.0)
    charisma: float = Field(5.0, ge=0.0, le=10.0)
    leadership: float = Field(5.0, ge=0.0, le=10.0)


class AssignedTask(BaseModel):
    """A task handed to the character by the office (advanced at the computer)."""

    display_name: str
    progress: float = Field(0.0, ge=0.0, le=100.0)
    required_location: Optional[str] = None


class LongTermGoal(BaseModel):
    type: str = "promotion"
    target: str = "Senior Position"
    progress: float = 0.0


class CharacterAction(BaseModel):
    """An action on the character's timeline (current or queued).

    ``type`` is deliberately an open string: unknown types still run for their
    duration and complete, they simply have no effects.
    """

    type: str
    duration: float = Field(..., ge=0.0, description="Seconds until completion")
    elapsed_time: float = Field(0.0, ge=0.0)
    params: Dict[str, Any] = Field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.elapsed_time >= self.duration


class MemoryEvent(BaseModel):
    """Something the character experienced, kept until consolidated."""

    description: str
    type: str = "observation"
    # Magnitude 7+ is always considered significant by the memory processor
    magnitude: int = Field(5, ge=0, le=10)
    actor_id: Optional[str] = None
    target: str = ""
    timestamp: float = Field(default_factory=time.time)


# ============================================================================
# Character
# ============================================================================


class Character(BaseModel):
    """A simulated office worker.

    Owned exclusively by the simulation. Renderers and debug views receive
    ``CharacterSnapshot`` copies instead of holding on to this object.

    Invariants maintained by the need model / action machine / resolver:
    - every value in ``needs`` stays within [NEED_MIN, NEED_MAX]
    - at most one ``current_action``; ``action_queue`` is strictly FIFO
    - ``mood`` is only written by the need model
    """

    id: str = Field(..., description="Unique stable identifier")
    name: str = Field("", description="Display name")
    job_role: str = "Employee"
    personality: List[str] = Field(default_factory=list)
    is_player: bool = False
    enabled: bool = True

    position: Position = Field(default_factory=lambda: Position(x=0.5, y=0.5))
    target_position: Optional[Position] = None
    path: List[Position] = Field(default_factory=list)

    needs: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_NEEDS))
    mood: Mood = Mood.NEUTRAL
    state: CharacterState = CharacterState.IDLE

    current_action: Optional[CharacterAction] = None
    action_queue: List[CharacterAction] = Field(default_factory=list)

    current_task: Optional[str] = None
    task_progress: float = 0.0
    tasks_completed: int = 0
    assigned_task: Optional[AssignedTask] = None
    skills: Skills = Field(default_factory=Skills)

    short_term_memory: List[MemoryEvent] = Field(default_factory=list)
    long_term_memory: List[str] = Field(default_factory=list)
    last_memory_consolidation: Optional[float] = None
    relationships: Dict[str, int] = Field(default_factory=dict)
    long_term_goal: Optional[LongTermGoal] = Field(default_factory=LongTermGoal)

    # Oracle bookkeeping
    prompt_count: int = 0
    last_prompt_time: Optional[float] = None

    @field_validator("needs")
    @classmethod
    def _needs_in_range(cls, value: Dict[str, float]) -> Dict[str, float]:
        # Recognized needs that were not supplied start from their defaults
        value = {**DEFAULT_NEEDS, **value}
        for need, amount in value.items():
            if not NEED_MIN <= amount <= NEED_MAX:
                raise ValueError(
                    f"need '{need}'={amount} outside [{NEED_MIN}, {NEED_MAX}]"
                )
        return value

    @model_validator(mode="after")
    def _default_name(self) -> "Character":
        if not self.name:
            self.name = f"Character_{self.id}"
        return self

    def remember(self, event: MemoryEvent) -> None:
        """Append to short-term memory, dropping the oldest beyond the limit."""

        self.short_term_memory.append(event)
        overflow = len(self.short_term_memory) - SHORT_TERM_MEMORY_LIMIT
        if overflow > 0:
            del self.short_term_memory[:overflow]

    def add_long_term_memory(self, summary: str) -> None:
        self.long_term_memory.append(summary)
        overflow = len(self.long_term_memory) - LONG_TERM_MEMORY_LIMIT
        if overflow > 0:
            del self.long_term_memory[:overflow]

    def snapshot(self) -> "CharacterSnapshot":
        """Return the read-only view consumed by renderers."""

        return CharacterSnapshot(
            id=self.id,
            name=self.name,
            position=self.position.model_copy(),
            state=self.state,
            mood=self.mood,
            current_task=self.current_task,
            task_progress=self.task_progress,
        )


class CharacterSnapshot(BaseModel):
    """Immutable rendering view of a character."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    position: Position
    state: CharacterState
    mood: Mood
    current_task: Optional[str] = None
    task_progress: float = 0.0


# ============================================================================
# Oracle Proposal Schemas
# ============================================================================
# A proposal is one JSON object: {"action": ..., "params": {...}, "reason": ...}.
# Each action is its own model; together they form a discriminated union so a
# validated proposal is always exactly one of the five variants.

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class MoveParams(BaseModel):
    x: float = Field(..., allow_inf_nan=False)
    y: float = Field(..., allow_inf_nan=False)


class WorkParams(BaseModel):
    task: Optional[str] = None


class TalkParams(BaseModel):
    character_id: NonEmptyStr = Field(
        ...,
        validation_alias=AliasChoices("character_id", "characterId", "character"),
    )
    message: NonEmptyStr


class EmptyParams(BaseModel):
    pass


class _ProposalBase(BaseModel):
    reason: str = Field("", description="Free-text rationale from the oracle")


class MoveProposal(_ProposalBase):
    action: Literal["move"]
    params: MoveParams


class WorkProposal(_ProposalBase):
    action: Literal["work"]
    params: WorkParams = Field(default_factory=WorkParams)


class TalkProposal(_ProposalBase):
    action: Literal["talk"]
    params: TalkParams


class EatProposal(_ProposalBase):
    action: Literal["eat"]
    params: EmptyParams = Field(default_factory=EmptyParams)


class RestProposal(_ProposalBase):
    action: Literal["rest"]
    params: EmptyParams = Field(default_factory=EmptyParams)


Proposal = Annotated[
    Union[MoveProposal, WorkProposal, TalkProposal, EatProposal, RestProposal],
    Field(discriminator="action"),
]

PROPOSAL_ADAPTER: TypeAdapter = TypeAdapter(Proposal)

# Derived from the union so the two can never drift apart.
PROPOSAL_ACTIONS = tuple(
    get_args(model.model_fields["action"].annotation)[0]
    for model in (MoveProposal, WorkProposal, TalkProposal, EatProposal, RestProposal)
)


class ConsolidationResult(BaseModel):
    """Structured answer of the memory consolidation LLM call."""

    thought: str = Field("", description="Reasoning behind the judgement")
    is_significant: bool = Field(
        ...,
        validation_alias=AliasChoices("is_significant", "isSignificant"),
    )
    summary: str = Field("", description="One-sentence first-person summary")


class ChatMessage(BaseModel):
    sender_id: str
    sender_name: str
    message: str
    timestamp: float = Field(default_factory=time.time)
