"""
Officesim - autonomous office-worker simulation.

Characters are driven by decaying needs, a mood derived from them, and
actions chosen either locally or proposed by an external AI oracle.

No file I/O required. No global config required.
All collaborators (oracle, chat, memory processor, logger) are injected.
"""

__version__ = "0.1.0"

# Main simulation components
from .simulation import Simulation, PendingProposal

# Core engine
from .needs import NeedModel, mood_for_needs, adjust_need, DEFAULT_DECAY_RATES
from .actions import ActionStateMachine, ActionType, make_action
from .resolver import AIActionResolver, parse_proposal, resolve_character
from .memory import (
    MemoryConsolidationTrigger,
    MemoryProcessor,
    LLMMemoryProcessor,
    is_significant_event,
)

# Collaborators
from .oracle import ProposalOracle, LLMOracle, ScriptedOracle
from .chat import ChatSink, InMemoryChatLog
from .policy import LocalPolicy
from .schedule import get_schedule_for_character, is_within_working_hours
from .logging_utils import SimulationLogger
from .prompts import PromptLibrary, PromptTemplate, RenderedPrompt, DEFAULT_PROMPTS

# Errors
from .errors import (
    SimulationError,
    ProposalError,
    MalformedProposal,
    UnknownAction,
    InvalidParams,
    CollaboratorFailure,
)

# Schemas
from .schemas import (
    Character,
    CharacterSnapshot,
    CharacterAction,
    CharacterState,
    Mood,
    Position,
    Skills,
    AssignedTask,
    LongTermGoal,
    MemoryEvent,
    ChatMessage,
    Proposal,
    MoveProposal,
    WorkProposal,
    TalkProposal,
    EatProposal,
    RestProposal,
)

__all__ = [
    # Main class
    "Simulation",
    "PendingProposal",
    # Engine
    "NeedModel",
    "mood_for_needs",
    "adjust_need",
    "DEFAULT_DECAY_RATES",
    "ActionStateMachine",
    "ActionType",
    "make_action",
    "AIActionResolver",
    "parse_proposal",
    "resolve_character",
    "MemoryConsolidationTrigger",
    "MemoryProcessor",
    "LLMMemoryProcessor",
    "is_significant_event",
    # Collaborators
    "ProposalOracle",
    "LLMOracle",
    "ScriptedOracle",
    "ChatSink",
    "InMemoryChatLog",
    "LocalPolicy",
    "get_schedule_for_character",
    "is_within_working_hours",
    "SimulationLogger",
    "PromptLibrary",
    "PromptTemplate",
    "RenderedPrompt",
    "DEFAULT_PROMPTS",
    # Errors
    "SimulationError",
    "ProposalError",
    "MalformedProposal",
    "UnknownAction",
    "InvalidParams",
    "CollaboratorFailure",
    # Schemas
    "Character",
    "CharacterSnapshot",
    "CharacterAction",
    "CharacterState",
    "Mood",
    "Position",
    "Skills",
    "AssignedTask",
    "LongTermGoal",
    "MemoryEvent",
    "ChatMessage",
    "Proposal",
    "MoveProposal",
    "WorkProposal",
    "TalkProposal",
    "EatProposal",
    "RestProposal",
]
