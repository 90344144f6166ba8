import pytest

from src.common.utils import clamp, finite_or_zero, normalize_adv_mode, unique_in_order


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_finite_or_zero_replaces_non_finite(value):
    assert finite_or_zero(value) == 0.0


def test_finite_or_zero_keeps_finite():
    assert finite_or_zero(16.3) == 16.3
    assert finite_or_zero(0) == 0.0


def test_normalize_adv_mode():
    assert normalize_adv_mode("Advantage") == "adv"
    assert normalize_adv_mode(" disadv ") == "dis"
    assert normalize_adv_mode("sideways") == "normal"
    assert normalize_adv_mode(None) == "normal"


def test_clamp_and_unique():
    assert clamp(1.4, 0.0, 1.0) == 1.0
    assert clamp(-0.2, 0.0, 1.0) == 0.0
    assert unique_in_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
