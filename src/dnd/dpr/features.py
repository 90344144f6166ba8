"""特性聚合：把接入同一个输出节点的所有特性节点合并成一个 FeatureBundle.

单一用途节点和旧版 legacy-all 节点都先转换成局部 FeatureBundle，
再统一走 FeatureBundle.merge，两种形态共享同一套合并规则。
"""
from functools import reduce
from typing import Iterable, Optional

from src.common.utils import clamp
from src.dnd.dpr.catalog import get_fighting_style
from src.dnd.dpr.dpr_state import (
    BrutalCriticalFeature,
    CritRangeFeature,
    FeatureBundle,
    FeatureData,
    FeaturesNode,
    FightingStyleFeature,
    HexbladeFeature,
    LegacyAllFeature,
    ManeuversFeature,
    RageFeature,
    SmiteFeature,
    SneakAttackFeature,
)

_MIN_CRIT_RANGE = 18
_MANEUVER_DICE = (6, 8, 10, 12)


def _style_id(style_id: Optional[str]) -> str | None:
    if not style_id:
        return None
    return get_fighting_style(style_id).id


def _crit_range(value: int) -> int:
    return int(clamp(value, _MIN_CRIT_RANGE, 20))


def _maneuver_die(value: int) -> int:
    """规范到合法的卓越骰面数，非法值取 d8."""
    if value <= 0:
        return 0
    return value if value in _MANEUVER_DICE else 8


def feature_to_bundle(feature: FeatureData) -> FeatureBundle:
    """单个特性节点 -> 局部 FeatureBundle."""
    match feature:
        case FightingStyleFeature():
            return FeatureBundle(style_id=_style_id(feature.style_id) or get_fighting_style(None).id)
        case SneakAttackFeature():
            return FeatureBundle(sneak_attack=True)
        case RageFeature():
            return FeatureBundle(rage=True)
        case SmiteFeature():
            return FeatureBundle(
                smite=True,
                smite_slot_level=max(1, feature.slot_level),
                smite_undead_or_fiend=feature.undead_or_fiend,
            )
        case HexbladeFeature():
            return FeatureBundle(hexblade=True)
        case CritRangeFeature():
            return FeatureBundle(crit_range=_crit_range(feature.crit_range))
        case ManeuversFeature():
            return FeatureBundle(
                maneuvers_per_round=max(0, feature.maneuvers_per_round),
                maneuver_die=_maneuver_die(feature.maneuver_die),
            )
        case BrutalCriticalFeature():
            return FeatureBundle(brutal_crit_dice=max(0, feature.brutal_crit_dice))
        case LegacyAllFeature():
            return FeatureBundle(
                style_id=_style_id(feature.style_id),
                sneak_attack=feature.sneak,
                rage=feature.rage,
                smite=feature.smite,
                smite_slot_level=max(1, feature.slot_level) if feature.smite else 0,
                smite_undead_or_fiend=feature.undead_or_fiend,
                hexblade=feature.hexblade,
                crit_range=_crit_range(feature.crit_range),
                maneuvers_per_round=max(0, feature.maneuvers_per_round),
                maneuver_die=_maneuver_die(feature.maneuver_die),
                brutal_crit_dice=max(0, feature.brutal_crit_dice),
            )
        case _:
            raise TypeError(f"Unsupported feature payload: {type(feature).__name__}")


def aggregate_features(nodes: Iterable[FeaturesNode]) -> FeatureBundle:
    """合并所有特性节点；没有节点时返回空 FeatureBundle."""
    return reduce(
        lambda acc, node: acc.merge(feature_to_bundle(node.data)),
        nodes,
        FeatureBundle(),
    )
