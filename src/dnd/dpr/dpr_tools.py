"""DPR 工具集合（供 Agent 调用）"""
import json
from typing import Any, Dict

from langchain_core.tools import tool

from src.common.utils import normalize_adv_mode
from src.dnd.dnd_state import AdvMode
from src.dnd.dpr.catalog import get_weapon
from src.dnd.dpr.dpr_graph import evaluate_graph
from src.dnd.dpr.probability import hit_probabilities
from src.dnd.dpr.storage import load_graph


@tool
def hit_chance(
    to_hit: float, target_ac: int, crit_range: int = 20, adv_mode: str = "normal"
) -> Dict[str, Any]:
    """
    计算命中率与暴击率

    Args:
        to_hit: 命中加值
        target_ac: 目标护甲等级
        crit_range: 暴击阈值 (20 / 19 / 18)
        adv_mode: normal / adv / dis

    Returns:
        命中率与暴击率
    """
    mode = AdvMode(normalize_adv_mode(adv_mode))
    p_hit, p_crit = hit_probabilities(to_hit, target_ac, crit_range, mode)
    return {
        "to_hit": to_hit,
        "target_ac": target_ac,
        "adv_mode": mode.value,
        "p_hit": p_hit,
        "p_crit": p_crit,
        "details": f"+{to_hit} vs AC{target_ac} ({mode.value}): 命中 {p_hit:.0%}, 暴击 {p_crit:.0%}",
    }


@tool
def estimate_dpr(graph_json: str) -> Dict[str, Any]:
    """
    计算一张 DPR 图中所有输出节点的每轮期望伤害

    Args:
        graph_json: 持久化格式的图 JSON

    Returns:
        {输出节点 id: 摘要或 None}
    """
    try:
        json.loads(graph_json)
    except json.JSONDecodeError as e:
        return {"error": f"无效的图 JSON: {e}"}

    summaries = evaluate_graph(load_graph(graph_json))
    return {
        output_id: summary.model_dump(mode="json", by_alias=True) if summary else None
        for output_id, summary in summaries.items()
    }


@tool
def lookup_weapon(weapon_id: str) -> Dict[str, Any]:
    """
    查询武器预设（未知 id 返回默认武器）

    Args:
        weapon_id: 武器 id，如 "greatsword"

    Returns:
        武器数据
    """
    weapon = get_weapon(weapon_id)
    return {
        "id": weapon.id,
        "name": weapon.name,
        "dice": weapon.dice,
        "versatile": weapon.versatile,
        "damage_type": weapon.damage_type.value,
        "handed": weapon.handed,
        "properties": list(weapon.properties),
        "finesse": weapon.finesse,
        "ranged": weapon.ranged,
        "tags": list(weapon.tags),
    }


def get_dpr_tools():
    """获取 DPR 工具列表"""
    return [hit_chance, estimate_dpr, lookup_weapon]
