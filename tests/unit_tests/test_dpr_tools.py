import pytest

from src.common import Context
from src.dnd.dpr.dpr_tools import estimate_dpr, get_dpr_tools, hit_chance, lookup_weapon
from src.dnd.dpr.storage import dumps_graph, seed_graph


def test_tool_registry():
    names = [t.name for t in get_dpr_tools()]
    assert names == ["hit_chance", "estimate_dpr", "lookup_weapon"]


def test_hit_chance():
    result = hit_chance.invoke({"to_hit": 5, "target_ac": 15})
    assert result["p_hit"] == pytest.approx(0.55)
    assert result["p_crit"] == pytest.approx(0.05)
    assert result["adv_mode"] == "normal"


def test_hit_chance_accepts_mode_aliases():
    result = hit_chance.invoke(
        {"to_hit": 5, "target_ac": 15, "crit_range": 19, "adv_mode": "Advantage"}
    )
    assert result["adv_mode"] == "adv"
    assert result["p_hit"] == pytest.approx(1 - 0.45 ** 2)
    assert result["p_crit"] == pytest.approx(1 - 0.9 ** 2)


def test_estimate_dpr():
    graph = seed_graph(Context(default_level=5, default_str=16, default_dex=14, default_target_ac=16))
    result = estimate_dpr.invoke({"graph_json": dumps_graph(graph)})
    assert set(result) == {"out-1"}
    assert result["out-1"]["dpr"] == pytest.approx(10.9)
    assert result["out-1"]["targetAC"] == 16


def test_estimate_dpr_rejects_invalid_json():
    result = estimate_dpr.invoke({"graph_json": "{oops"})
    assert "error" in result


def test_lookup_weapon():
    assert lookup_weapon.invoke({"weapon_id": "greatsword"})["dice"] == "2d6"
    fallback = lookup_weapon.invoke({"weapon_id": "spork"})
    assert fallback["id"] == "longsword"
    assert fallback["versatile"] == "1d10"
