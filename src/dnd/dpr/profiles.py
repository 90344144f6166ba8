"""攻击者 / 目标属性的解析：角色构建器快照、怪物图鉴与手动设置的优先级."""
import logging
from typing import List, Optional

from src.dnd.dnd_state import (
    AttackerProfile,
    CharacterSnapshot,
    DamageTypeOption,
    TargetProfile,
)
from src.dnd.dpr.catalog import get_monster
from src.dnd.dpr.dpr_state import Settings
from src.dnd.dpr.probability import ability_modifier

logger = logging.getLogger(__name__)


def resolve_attacker(
    settings: Settings, character: Optional[CharacterSnapshot] = None
) -> AttackerProfile:
    """优先使用角色构建器的数据，缺失时使用图上的全局设置."""
    if character is not None:
        return AttackerProfile(
            level=max(1, min(20, character.total_level)),
            str_mod=character.str_mod,
            dex_mod=character.dex_mod,
        )
    return AttackerProfile(
        level=settings.level,
        str_mod=ability_modifier(settings.str_score),
        dex_mod=ability_modifier(settings.dex_score),
    )


def _first_damage_type(values: List[str]) -> DamageTypeOption:
    """设置里只能放一种抗性/易伤，取怪物列表中第一个物理伤害类型."""
    for value in values:
        try:
            option = DamageTypeOption(value)
        except ValueError:
            continue
        if option != DamageTypeOption.NONE:
            return option
    return DamageTypeOption.NONE


def resolve_target(
    settings: Settings,
    monster_id: Optional[str] = None,
    manual_override: bool = False,
) -> TargetProfile:
    """目标属性：开启手动覆盖或没有选怪物时使用设置，否则用怪物数据预填.

    Args:
        settings: 图的全局设置
        monster_id: 怪物图鉴 id
        manual_override: 手动覆盖开关，开启时始终优先

    Returns:
        TargetProfile
    """
    monster = None if manual_override else get_monster(monster_id)
    if monster is None:
        return TargetProfile(ac=settings.target_ac, resist=settings.resist, vuln=settings.vuln)

    if len(monster.resistances) > 1:
        logger.info(f"{monster.name} 有多个抗性 {monster.resistances}，只取第一个")
    return TargetProfile(
        ac=monster.ac,
        resist=_first_damage_type(monster.resistances),
        vuln=_first_damage_type(monster.vulnerabilities),
        abilities=dict(monster.abilities),
        name=monster.name,
    )
