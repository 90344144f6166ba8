import pytest

from src.dnd.dnd_state import ActionType, AdvMode
from src.dnd.dpr.probability import (
    ability_modifier,
    adv_transform,
    attacks_per_round,
    base_crit_probability,
    hit_probabilities,
    proficiency_bonus,
    rage_bonus,
    sneak_attack_dice,
)


@pytest.mark.parametrize("to_hit", [-20, -5, 0, 3, 8, 15, 40])
@pytest.mark.parametrize("ac", [1, 10, 16, 22, 30])
@pytest.mark.parametrize("mode", list(AdvMode))
def test_hit_probability_stays_in_bounds(to_hit, ac, mode):
    p_hit, p_crit = hit_probabilities(to_hit, ac, 20, mode)
    assert 0.0 <= p_hit <= 1.0
    assert 0.0 <= p_crit <= 1.0


def test_hit_probability_linear_model():
    assert hit_probabilities(8, 16) == pytest.approx((0.65, 0.05))
    assert hit_probabilities(3, 16) == pytest.approx((0.40, 0.05))
    assert hit_probabilities(100, 10)[0] == 1.0
    assert hit_probabilities(-100, 30)[0] == 0.0


def test_crit_range_scales_crit_chance():
    base = base_crit_probability(20)
    assert base == pytest.approx(0.05)
    assert base_crit_probability(19) == 2 * base
    assert base_crit_probability(18) == pytest.approx(3 * base)


def test_advantage_and_disadvantage_exact_values():
    assert adv_transform(0.5, AdvMode.ADV) == 0.75
    assert adv_transform(0.5, AdvMode.DIS) == 0.25
    assert adv_transform(0.5, AdvMode.NORMAL) == 0.5
    # 两个变换不是互逆
    assert adv_transform(adv_transform(0.5, AdvMode.DIS), AdvMode.ADV) != 0.5


@pytest.mark.parametrize("p", [0.0, 0.05, 0.3, 0.5, 0.65, 0.99, 1.0])
def test_advantage_dominates_disadvantage(p):
    assert adv_transform(p, AdvMode.ADV) >= p >= adv_transform(p, AdvMode.DIS)


def test_roll_mode_applies_to_crit_as_well():
    p_hit, p_crit = hit_probabilities(6, 16, 20, AdvMode.ADV)
    assert p_hit == pytest.approx(1 - 0.45 ** 2)
    assert p_crit == pytest.approx(1 - 0.95 ** 2)


@pytest.mark.parametrize(
    "level, expected",
    [(1, 2), (4, 2), (5, 3), (8, 3), (9, 4), (13, 5), (16, 5), (17, 6), (20, 6)],
)
def test_proficiency_bonus(level, expected):
    assert proficiency_bonus(level) == expected


@pytest.mark.parametrize(
    "level, expected", [(1, 1), (4, 1), (5, 2), (10, 2), (11, 3), (19, 3), (20, 4)]
)
def test_extra_attack_only_for_action(level, expected):
    assert attacks_per_round(level, ActionType.ACTION) == expected
    assert attacks_per_round(level, ActionType.BONUS) == 1
    assert attacks_per_round(level, ActionType.REACTION) == 1


def test_rage_bonus_and_sneak_dice():
    assert [rage_bonus(lv) for lv in (1, 8, 9, 15, 16, 20)] == [2, 2, 3, 3, 4, 4]
    assert [sneak_attack_dice(lv) for lv in (1, 2, 3, 5, 19, 20)] == [1, 1, 2, 3, 10, 10]


def test_ability_modifier():
    assert ability_modifier(20) == 5
    assert ability_modifier(16) == 3
    assert ability_modifier(10) == 0
    assert ability_modifier(9) == -1
    assert ability_modifier(8) == -1
