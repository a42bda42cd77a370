"""Exception hierarchy for the character simulation.

Every error that can come out of an externally sourced input or an external
collaborator is one of the classes below. The simulation owner catches them at
the boundary, logs them with the character identity, and continues: none of
them is fatal and none of them leaves a character partially updated.
"""

from typing import Any, Optional


def _preview(value: Any, *, limit: int = 120) -> str:
    """Return a compact, single-line preview of the offending input."""

    if value is None:
        return "null"
    text = value if isinstance(value, str) else repr(value)
    text = " ".join(text.split())
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


class SimulationError(Exception):
    """Base class for recoverable simulation errors."""

    kind = "SimulationError"

    def __init__(
        self,
        reason: str,
        *,
        character_id: Optional[str] = None,
        raw_input: Any = None,
    ) -> None:
        self.reason = reason
        self.character_id = character_id
        self.raw_input = raw_input
        who = character_id or "unknown character"
        message = f"{self.kind} for {who}: {reason}"
        if raw_input is not None:
            message += f" | input={_preview(raw_input)}"
        super().__init__(message)


class ProposalError(SimulationError):
    """An oracle proposal was rejected before it touched any state."""

    kind = "ProposalError"


class MalformedProposal(ProposalError):
    """Proposal text is not a JSON object or lacks the ``action`` field."""

    kind = "MalformedProposal"


class UnknownAction(ProposalError):
    """Proposal names an action outside the closed handler set."""

    kind = "UnknownAction"

    def __init__(self, action: Any, **kwargs: Any) -> None:
        self.action = action
        super().__init__(f"unknown action {action!r}", **kwargs)


class InvalidParams(ProposalError):
    """Handler-specific parameters are missing, mistyped, or unresolvable."""

    kind = "InvalidParams"

    def __init__(self, action: str, reason: str, **kwargs: Any) -> None:
        self.action = action
        super().__init__(f"{action}: {reason}", **kwargs)


class CollaboratorFailure(SimulationError):
    """An external collaborator (oracle, chat, memory processor) failed."""

    kind = "CollaboratorFailure"

    def __init__(
        self,
        collaborator: str,
        underlying: BaseException,
        **kwargs: Any,
    ) -> None:
        self.collaborator = collaborator
        self.underlying = underlying
        super().__init__(f"{collaborator} failed: {underlying}", **kwargs)


__all__ = [
    "SimulationError",
    "ProposalError",
    "MalformedProposal",
    "UnknownAction",
    "InvalidParams",
    "CollaboratorFailure",
]
