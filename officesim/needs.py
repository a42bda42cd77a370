"""Need decay and mood derivation.

Needs are drives on a 0-10 scale that drain over simulated time. Mood is a
label computed from the needs with a fixed priority order; it is never stored
independently of them, so callers recompute it after every change to needs.

This module only ever sees ``Character`` objects owned by the simulation, never
raw external data, so there is no validation here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping

from .schemas import DEFAULT_NEEDS, NEED_MAX, NEED_MIN, Character, Mood


# Drain per simulated minute.
DEFAULT_DECAY_RATES: Dict[str, float] = {
    "energy": 0.1,
    "hunger": 0.08,
    "social": 0.05,
    "comfort": 0.02,
    "stress": 0.03,
}

# Mood thresholds on the 0-10 scale.
TIRED_BELOW = 3.0
HUNGRY_BELOW = 3.0
STRESSED_ABOVE = 7.0
LONELY_BELOW = 3.0


def clamp_need(value: float) -> float:
    return min(NEED_MAX, max(NEED_MIN, value))


def adjust_need(character: Character, need: str, delta: float) -> float:
    """Add ``delta`` to a need, clamped to the canonical range.

    Returns the new value. Used by action effects and proposal handlers so
    every restoration or drain goes through the same clamp.
    """

    current = character.needs.get(need, DEFAULT_NEEDS.get(need, NEED_MIN))
    character.needs[need] = clamp_need(current + delta)
    return character.needs[need]


def mood_for_needs(needs: Mapping[str, float]) -> Mood:
    """Pure mood rule: the first matching condition wins.

    Priority: energy < 3 -> Tired, hunger < 3 -> Hungry, stress > 7 ->
    Stressed, social < 3 -> Lonely, otherwise Neutral.
    """

    def value(need: str) -> float:
        return needs.get(need, DEFAULT_NEEDS[need])

    if value("energy") < TIRED_BELOW:
        return Mood.TIRED
    if value("hunger") < HUNGRY_BELOW:
        return Mood.HUNGRY
    if value("stress") > STRESSED_ABOVE:
        return Mood.STRESSED
    if value("social") < LONELY_BELOW:
        return Mood.LONELY
    return Mood.NEUTRAL


@dataclass
class NeedModel:
    """Decays needs over time and derives mood.

    ``rates`` maps need name to drain per simulated minute. Needs without a
    configured rate are left untouched by ``decay``.
    """

    rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_DECAY_RATES))

    def decay(self, character: Character, elapsed_seconds: float) -> None:
        """Drain each rated need by ``rate * elapsed minutes``, floored at 0."""

        if elapsed_seconds <= 0:
            return

        minutes = elapsed_seconds / 60.0
        for need, current in character.needs.items():
            rate = self.rates.get(need)
            if not rate:
                continue
            # Never raise a need here; a negative rate is treated as no decay.
            drained = max(0.0, rate * minutes)
            character.needs[need] = max(NEED_MIN, current - drained)

    def derive_mood(self, character: Character) -> Mood:
        """Recompute ``character.mood`` from the current needs."""

        character.mood = mood_for_needs(character.needs)
        return character.mood

    def update(self, character: Character, elapsed_seconds: float) -> Mood:
        """Decay then derive mood: the need step of one tick."""

        self.decay(character, elapsed_seconds)
        return self.derive_mood(character)
