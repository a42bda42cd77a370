"""Oracle collaborators that answer proposal prompts.

The simulation sends a rendered prompt string and expects the raw proposal
text back. Anything that raises is treated as an unavailable oracle.
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Deque, Dict, Iterable, List, Optional, Protocol

from .config import Config
from .errors import ProposalError
from .llm_utils import LLM_TIMEOUT_SECONDS, call_llm_text
from .resolver import parse_proposal


class ProposalOracle(Protocol):
    """Protocol for proposal sources."""

    async def request(self, character_id: str, prompt: str) -> str:
        """Return the raw proposal text for ``character_id``."""
        ...


def proposal_issues(text: str) -> List[str]:
    """Return why ``text`` is not an acceptable proposal (empty when it is).

    Used as the retry check for LLM output so the model gets a chance to fix
    unknown actions or missing params before the text reaches the resolver.
    """

    try:
        parse_proposal(text)
    except ProposalError as exc:
        return [exc.reason]
    return []


class LLMOracle:
    """Asks an LLM (through mirascope) for the next action."""

    def __init__(
        self,
        *,
        llm_provider: Optional[str] = None,
        llm_model: Optional[str] = None,
        max_attempts: int = 3,
        timeout: float = LLM_TIMEOUT_SECONDS,
    ) -> None:
        self.llm_provider = llm_provider or Config.LLM_PROVIDER
        self.llm_model = llm_model or Config.LLM_MODEL
        self.max_attempts = max_attempts
        self.timeout = timeout

    async def request(self, character_id: str, prompt: str) -> str:
        return await call_llm_text(
            system_prompt="",
            user_prompt=prompt,
            llm_provider=self.llm_provider,
            llm_model=self.llm_model,
            check=proposal_issues,
            max_attempts=self.max_attempts,
            timeout=self.timeout,
        )


class ScriptedOracle:
    """Deterministic oracle replaying canned responses per character.

    Useful for demos and tests. When a character's script runs out the
    ``fallback`` text is returned; ``None`` makes the oracle raise instead,
    which the simulation treats like an unavailable provider.
    """

    def __init__(
        self,
        scripts: Optional[Dict[str, Iterable[str]]] = None,
        *,
        fallback: Optional[str] = '{"action": "rest", "params": {}, "reason": "nothing to do"}',
    ) -> None:
        self._scripts: Dict[str, Deque[str]] = defaultdict(deque)
        for character_id, responses in (scripts or {}).items():
            self._scripts[character_id].extend(responses)
        self.fallback = fallback
        self.prompts: List[tuple[str, str]] = []

    def push(self, character_id: str, response: str) -> None:
        self._scripts[character_id].append(response)

    async def request(self, character_id: str, prompt: str) -> str:
        self.prompts.append((character_id, prompt))
        script = self._scripts[character_id]
        if script:
            return script.popleft()
        if self.fallback is None:
            raise RuntimeError(f"no scripted response left for {character_id}")
        return self.fallback
