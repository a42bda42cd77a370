"""Prompt templates and rendering for oracle and memory calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping


@dataclass
class PromptTemplate:
    """Represents a templated prompt with ``{{placeholder}}`` markers."""

    name: str
    system: str
    user: str
    description: str = ""


@dataclass
class RenderedPrompt:
    system: str
    user: str

    def combined(self) -> str:
        """System and user sections joined for single-string transports."""

        return "\n\n".join(part for part in (self.system.strip(), self.user.strip()) if part)


class PromptLibrary:
    """Container for named prompt templates."""

    def __init__(self) -> None:
        self.templates: Dict[str, PromptTemplate] = {}

    def register(self, template: PromptTemplate) -> None:
        self.templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        return self.templates[name]


def render_prompt(template: PromptTemplate, values: Mapping[str, str]) -> RenderedPrompt:
    """Fill ``{{key}}`` placeholders in both prompt sections.

    Placeholders use double braces so the JSON examples inside templates are
    left alone. Unknown placeholders stay in the text as-is.
    """

    system = template.system
    user = template.user
    for key, value in values.items():
        placeholder = "{{" + key + "}}"
        system = system.replace(placeholder, value)
        user = user.replace(placeholder, value)
    return RenderedPrompt(system=system, user=user)


# Default templates -----------------------------------------------------------

PROPOSE_ACTION = "propose_action"
CONSOLIDATE_MEMORY = "consolidate_memory"

DEFAULT_PROMPTS = PromptLibrary()

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=PROPOSE_ACTION,
        system=(
            "You are {{character_name}}, a {{job_role}} in an office simulation. "
            "Stay in character and pick exactly one next action."
        ),
        user=(
            "Current mood: {{mood}}\n"
            "Needs (0-10): {{needs}}\n"
            "Personality traits: {{personality}}\n\n"
            "Available actions:\n"
            "- move(x,y): Navigate to coordinates between 0 and 1\n"
            "- work(task): Perform job-related task\n"
            "- talk(character,message): Communicate with a colleague (use their id or name)\n"
            "- eat(): Satisfy hunger\n"
            "- rest(): Recover energy\n\n"
            "Current situation: {{situation}}\n\n"
            "Respond with JSON only: "
            "{\"action\":\"action_name\",\"params\":{},\"reason\":\"your rationale\"}"
        ),
        description="Asks the oracle for the character's next action.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name=CONSOLIDATE_MEMORY,
        system=(
            "### MEMORY CONSOLIDATION ###\n"
            "You are {{character_name}}. Based on your personality ({{personality}}) and the "
            "following recent events, what is the single most important or memorable thing "
            "that just happened?"
        ),
        user=(
            "--- Recent Events ---\n"
            "{{events}}\n"
            "---------------------\n"
            "Summarize the most significant event in a single, concise sentence from your "
            "perspective. If nothing significant happened, set is_significant to false.\n"
            "Respond ONLY with a JSON object: "
            "{\"thought\": \"your reasoning\", \"is_significant\": true, "
            "\"summary\": \"<your one-sentence summary>\"}"
        ),
        description="Turns significant short-term events into one long-term memory.",
    )
)
