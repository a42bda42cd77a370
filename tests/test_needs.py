"""Tests for need decay and mood derivation."""

import pytest

from officesim.needs import DEFAULT_DECAY_RATES, NeedModel, adjust_need, mood_for_needs
from officesim.schemas import Character, Mood


def _character(**needs) -> Character:
    return Character(id="c1", needs=needs)


def test_decay_uses_rate_per_minute():
    character = _character(energy=8, hunger=8, social=8, comfort=8, stress=2)

    NeedModel().decay(character, elapsed_seconds=120)

    assert character.needs["energy"] == pytest.approx(8 - DEFAULT_DECAY_RATES["energy"] * 2)
    assert character.needs["hunger"] == pytest.approx(8 - DEFAULT_DECAY_RATES["hunger"] * 2)
    assert character.needs["stress"] == pytest.approx(2 - DEFAULT_DECAY_RATES["stress"] * 2)


def test_decay_clamps_at_zero():
    character = _character(energy=0.05, hunger=0.0)

    NeedModel().decay(character, elapsed_seconds=3600)

    assert character.needs["energy"] == 0.0
    assert character.needs["hunger"] == 0.0


def test_needs_without_rate_are_untouched():
    character = _character(energy=8, hunger=6)

    NeedModel(rates={"energy": 0.1}).decay(character, elapsed_seconds=600)

    assert character.needs["energy"] == pytest.approx(7.0)
    assert character.needs["hunger"] == 6


@pytest.mark.parametrize("elapsed", [0, 1, 59, 600, 86_400])
def test_decay_never_raises_or_underflows(elapsed):
    character = _character(energy=5, hunger=2, social=9, comfort=0.5, stress=10)
    before = dict(character.needs)

    NeedModel().decay(character, elapsed_seconds=elapsed)

    for need, value in character.needs.items():
        assert 0.0 <= value <= before[need]


def test_negative_elapsed_and_rates_do_not_restore():
    character = _character(energy=5)

    NeedModel().decay(character, elapsed_seconds=-300)
    NeedModel(rates={"energy": -1.0}).decay(character, elapsed_seconds=300)

    assert character.needs["energy"] == 5


def test_mood_tired_has_top_priority():
    needs = {"energy": 2, "hunger": 8, "social": 8, "comfort": 8, "stress": 2}
    assert mood_for_needs(needs) is Mood.TIRED

    # Still Tired when every other rule would match too
    needs = {"energy": 2, "hunger": 1, "social": 1, "comfort": 8, "stress": 9}
    assert mood_for_needs(needs) is Mood.TIRED


def test_mood_stressed_when_no_higher_rule_matches():
    needs = {"energy": 8, "hunger": 8, "social": 8, "comfort": 8, "stress": 8}
    assert mood_for_needs(needs) is Mood.STRESSED


@pytest.mark.parametrize(
    "needs,expected",
    [
        ({"energy": 8, "hunger": 2.9, "social": 1, "stress": 9}, Mood.HUNGRY),
        ({"energy": 8, "hunger": 8, "social": 2, "stress": 7}, Mood.LONELY),
        ({"energy": 3, "hunger": 3, "social": 3, "stress": 7}, Mood.NEUTRAL),
    ],
)
def test_mood_priority_order(needs, expected):
    assert mood_for_needs(needs) is expected


def test_derive_mood_writes_character_field():
    character = _character(energy=1)
    model = NeedModel()

    assert model.derive_mood(character) is Mood.TIRED
    assert character.mood is Mood.TIRED

    character.needs["energy"] = 9
    model.derive_mood(character)
    assert character.mood is Mood.NEUTRAL


def test_update_decays_then_derives_mood():
    character = _character(energy=3.05)

    mood = NeedModel().update(character, elapsed_seconds=60)

    assert character.needs["energy"] == pytest.approx(2.95)
    assert mood is Mood.TIRED


def test_adjust_need_clamps_both_ways():
    character = _character(energy=9.5, stress=0.2)

    assert adjust_need(character, "energy", 3) == 10.0
    assert adjust_need(character, "stress", -1) == 0.0
