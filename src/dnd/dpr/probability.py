"""命中 / 暴击概率模型与等级相关的规则表.

全部是纯函数：同样的输入永远得到同样的输出，不使用随机数。
"""
import math
from typing import Tuple

from src.common.utils import clamp
from src.dnd.dnd_state import ActionType, AdvMode
from src.dnd.dpr.config import SNEAK_DICE_CAP


def ability_modifier(score: int) -> int:
    """属性值 -> 调整值."""
    return (score - 10) // 2


def proficiency_bonus(level: int) -> int:
    """熟练加值：1-4 级 +2，之后每 4 级 +1，17 级起 +6."""
    if level >= 17:
        return 6
    if level >= 13:
        return 5
    if level >= 9:
        return 4
    if level >= 5:
        return 3
    return 2


def attacks_per_round(level: int, action_type: ActionType) -> int:
    """一条攻击序列每轮的攻击次数.

    只有主动作享受额外攻击（按战士的 5/11/20 级成长）；其它动作类型恒为 1。
    """
    if action_type != ActionType.ACTION:
        return 1
    if level >= 20:
        return 4
    if level >= 11:
        return 3
    if level >= 5:
        return 2
    return 1


def rage_bonus(level: int) -> int:
    """狂暴伤害加值."""
    if level >= 16:
        return 4
    if level >= 9:
        return 3
    return 2


def sneak_attack_dice(level: int) -> int:
    """偷袭骰数量 ceil(level / 2)，上限 10."""
    return min(SNEAK_DICE_CAP, math.ceil(level / 2))


def adv_transform(p: float, mode: AdvMode) -> float:
    """优势/劣势对单次成功概率的变换.

    adv(p) = 1 - (1 - p)^2, dis(p) = p^2, normal(p) = p
    """
    if mode == AdvMode.ADV:
        return 1 - (1 - p) ** 2
    if mode == AdvMode.DIS:
        return p ** 2
    return p


def base_hit_probability(to_hit: float, target_ac: int) -> float:
    """d20 + to_hit >= AC 的线性近似，截断到 [0, 1]."""
    return clamp((21 + to_hit - target_ac) / 20, 0.0, 1.0)


def base_crit_probability(crit_range: int) -> float:
    """掷出 crit_range 及以上即暴击."""
    return clamp((21 - crit_range) / 20, 0.0, 1.0)


def hit_probabilities(
    to_hit: float,
    target_ac: int,
    crit_range: int = 20,
    adv_mode: AdvMode = AdvMode.NORMAL,
) -> Tuple[float, float]:
    """计算 (命中率, 暴击率)，两者都经过同一个优势/劣势变换."""
    p_hit = adv_transform(base_hit_probability(to_hit, target_ac), adv_mode)
    p_crit = adv_transform(base_crit_probability(crit_range), adv_mode)
    return clamp(p_hit, 0.0, 1.0), clamp(p_crit, 0.0, 1.0)
