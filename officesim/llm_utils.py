"""Helpers for LLM calls with validation-aware retries.

Two flavours share the same retry loop:

- ``call_llm_with_retries`` asks mirascope for a pydantic ``response_model``
  and retries on ``ValidationError``.
- ``call_llm_text`` returns plain text and retries while a caller-supplied
  ``check`` rejects it (used for oracle proposals, which are validated again
  by the resolver anyway).

Each retry appends corrective feedback to the original prompt so the model
keeps the full context.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from mirascope import llm
from pydantic import BaseModel, ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt


ModelT = TypeVar("ModelT", bound=BaseModel)
LLM_TIMEOUT_SECONDS = 60.0


@dataclass(slots=True)
class ValidationFeedback:
    """Structured feedback for retrying failed LLM outputs."""

    llm_text: str
    issues: Sequence[str]


class ResponseRejected(ValueError):
    """A text response did not pass the caller's check."""

    def __init__(self, issues: Sequence[str]) -> None:
        self.issues = list(issues)
        super().__init__("; ".join(self.issues) or "response rejected")


def _build_feedback(issues: Sequence[str]) -> ValidationFeedback:
    instructions = [
        "Your previous JSON response was rejected.",
        "Produce a corrected response that strictly follows the requested format.",
        "Do not include explanations or code fences; return only valid JSON.",
        "Issues detected:",
    ]
    instructions.extend(f"- {issue}" for issue in issues)
    return ValidationFeedback(llm_text="\n".join(instructions), issues=list(issues))


def inject_validation_feedback(error: ValidationError) -> ValidationFeedback:
    """Convert a pydantic ``ValidationError`` into retry guidance."""

    issues: list[str] = []
    for err in error.errors(include_url=False):
        loc = ".".join(str(part) for part in err.get("loc", [])) or "root"
        issues.append(f"{loc}: {err.get('msg', 'validation error')}")
    if not issues:
        issues.append("root: response did not match the expected schema")
    return _build_feedback(issues)


def _join_sections(*sections: Optional[str]) -> str:
    return "\n\n".join(section.strip() for section in sections if section and section.strip())


async def _retrying_call(
    *,
    invoke: Callable[[str], Any],
    system_prompt: str,
    user_prompt: str,
    retry_on: type[Exception],
    to_feedback: Callable[[Exception], ValidationFeedback],
    label: str,
    max_attempts: int,
    timeout: float,
) -> Any:
    feedback: ValidationFeedback | None = None
    attempt_number = 0

    # Only ``retry_on`` triggers another attempt; timeouts and provider errors
    # propagate immediately.
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(retry_on),
        stop=stop_after_attempt(max_attempts),
        reraise=True,
    ):
        with attempt:
            attempt_number += 1
            if attempt_number > 1:
                print(f"LLM retry {attempt_number}/{max_attempts} for {label}.")
            prompt = _join_sections(
                system_prompt,
                user_prompt,
                feedback.llm_text if feedback is not None else None,
            )
            try:
                return await asyncio.wait_for(invoke(prompt), timeout=timeout)
            except retry_on as exc:
                feedback = to_feedback(exc)
                print(f"LLM output rejected for {label} (attempt {attempt_number}/{max_attempts}).")
                for issue in feedback.issues:
                    print(f"    - {issue}")
                raise
            except asyncio.TimeoutError:
                print(f"LLM call timed out after {int(timeout)}s for {label}.")
                raise

    raise RuntimeError("LLM retry mechanism exited unexpectedly")


async def call_llm_with_retries(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    response_model: type[ModelT],
    max_attempts: int = 3,
    timeout: float = LLM_TIMEOUT_SECONDS,
) -> ModelT:
    """Structured LLM call returning ``response_model``."""

    @llm.call(provider=llm_provider, model=llm_model, response_model=response_model)
    async def _invoke(prompt: str) -> str:
        return prompt

    return await _retrying_call(
        invoke=_invoke,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        retry_on=ValidationError,
        to_feedback=inject_validation_feedback,
        label=response_model.__name__,
        max_attempts=max_attempts,
        timeout=timeout,
    )


async def call_llm_text(
    *,
    system_prompt: str,
    user_prompt: str,
    llm_provider: str,
    llm_model: str,
    check: Optional[Callable[[str], Sequence[str]]] = None,
    max_attempts: int = 3,
    timeout: float = LLM_TIMEOUT_SECONDS,
) -> str:
    """Plain-text LLM call.

    ``check`` returns a list of problems with the text (empty when fine); a
    non-empty list triggers a retry with those problems as feedback. After
    the last attempt the final ``ResponseRejected`` propagates.
    """

    @llm.call(provider=llm_provider, model=llm_model)
    async def _call(prompt: str) -> str:
        return prompt

    async def _invoke(prompt: str) -> str:
        response = await _call(prompt)
        text = str(response.content)
        if check is not None:
            issues = check(text)
            if issues:
                raise ResponseRejected(issues)
        return text

    return await _retrying_call(
        invoke=_invoke,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        retry_on=ResponseRejected,
        to_feedback=lambda exc: _build_feedback(exc.issues),
        label="text response",
        max_attempts=max_attempts,
        timeout=timeout,
    )
