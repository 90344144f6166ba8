"""武器 / 战斗风格 / 特性类型 / 怪物 静态图鉴.

所有查询都不会抛异常：未知 id 回退到图鉴第一项（怪物除外，怪物是可选的）。
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from src.dnd.dnd_state import DamageType, Monster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Weapon:
    """武器预设."""

    id: str
    name: str
    dice: str  # 单手伤害骰，如 "1d8"
    damage_type: DamageType
    handed: str  # "1h" / "2h"
    versatile: Optional[str] = None  # 双手持握时的伤害骰
    properties: Tuple[str, ...] = ()
    finesse: bool = False
    ranged: bool = False
    tags: Tuple[str, ...] = ()  # gwm / ss / pam / cbe 专长资格

    @property
    def melee(self) -> bool:
        return not self.ranged

    @property
    def two_handed(self) -> bool:
        return self.handed == "2h"


@dataclass(frozen=True)
class FightingStyle:
    id: str
    name: str
    tag: str


@dataclass(frozen=True)
class FeatureTypeInfo:
    id: str
    name: str


# ============================================================
# 武器
# ============================================================
WEAPON_PRESETS: List[Weapon] = [
    Weapon("longsword", "Longsword", "1d8", DamageType.SLASHING, "1h", versatile="1d10",
           properties=("versatile",)),
    Weapon("greatsword", "Greatsword", "2d6", DamageType.SLASHING, "2h",
           properties=("heavy", "two-handed"), tags=("gwm",)),
    Weapon("rapier", "Rapier", "1d8", DamageType.PIERCING, "1h",
           properties=("finesse",), finesse=True),
    Weapon("shortsword", "Shortsword", "1d6", DamageType.PIERCING, "1h",
           properties=("finesse", "light"), finesse=True),
    Weapon("longbow", "Longbow", "1d8", DamageType.PIERCING, "2h",
           properties=("heavy", "two-handed", "ammunition"), ranged=True, tags=("ss",)),
    Weapon("handaxe", "Handaxe", "1d6", DamageType.SLASHING, "1h",
           properties=("light", "thrown")),
    Weapon("glaive", "Glaive", "1d10", DamageType.SLASHING, "2h",
           properties=("heavy", "reach", "two-handed"), tags=("gwm", "pam")),
    Weapon("halberd", "Halberd", "1d10", DamageType.SLASHING, "2h",
           properties=("heavy", "reach", "two-handed"), tags=("gwm", "pam")),
    Weapon("spear", "Spear", "1d6", DamageType.PIERCING, "1h", versatile="1d8",
           properties=("thrown", "versatile"), tags=("pam",)),
    Weapon("hcrossbow", "Heavy Crossbow", "1d10", DamageType.PIERCING, "2h",
           properties=("heavy", "ammunition", "loading", "two-handed"), ranged=True,
           tags=("ss", "cbe")),
    Weapon("dagger", "Dagger", "1d4", DamageType.PIERCING, "1h",
           properties=("finesse", "light", "thrown"), finesse=True),
    Weapon("scimitar", "Scimitar", "1d6", DamageType.SLASHING, "1h",
           properties=("finesse", "light"), finesse=True),
    Weapon("battleaxe", "Battleaxe", "1d8", DamageType.SLASHING, "1h", versatile="1d10",
           properties=("versatile",)),
    Weapon("warhammer", "Warhammer", "1d8", DamageType.BLUDGEONING, "1h", versatile="1d10",
           properties=("versatile",)),
    Weapon("greataxe", "Greataxe", "1d12", DamageType.SLASHING, "2h",
           properties=("heavy", "two-handed"), tags=("gwm",)),
    Weapon("maul", "Maul", "2d6", DamageType.BLUDGEONING, "2h",
           properties=("heavy", "two-handed"), tags=("gwm",)),
    Weapon("quarterstaff", "Quarterstaff", "1d6", DamageType.BLUDGEONING, "1h", versatile="1d8",
           properties=("versatile",), tags=("pam",)),
    Weapon("shortbow", "Shortbow", "1d6", DamageType.PIERCING, "2h",
           properties=("ammunition", "two-handed"), ranged=True, tags=("ss",)),
    Weapon("handcrossbow", "Hand Crossbow", "1d6", DamageType.PIERCING, "1h",
           properties=("ammunition", "light", "loading"), ranged=True, tags=("ss", "cbe")),
    Weapon("lcrossbow", "Light Crossbow", "1d8", DamageType.PIERCING, "2h",
           properties=("ammunition", "loading", "two-handed"), ranged=True, tags=("ss", "cbe")),
]

_WEAPONS_BY_ID: Dict[str, Weapon] = {w.id: w for w in WEAPON_PRESETS}


# ============================================================
# 战斗风格
# ============================================================
FIGHTING_STYLES: List[FightingStyle] = [
    FightingStyle("defense", "Defense (+1 AC)", "defense"),
    FightingStyle("dueling", "Dueling (+2 dmg with 1H melee)", "melee-1h"),
    FightingStyle("great-weapon", "Great Weapon Fighting (reroll 1-2)", "melee-2h"),
    FightingStyle("archery", "Archery (+2 to hit)", "ranged"),
    FightingStyle("two-weapon", "Two-Weapon Fighting (add mod to offhand)", "twf"),
]

_STYLES_BY_ID: Dict[str, FightingStyle] = {s.id: s for s in FIGHTING_STYLES}


# ============================================================
# 特性节点类型
# ============================================================
FEATURE_TYPES: List[FeatureTypeInfo] = [
    FeatureTypeInfo("fighting-style", "Fighting Style"),
    FeatureTypeInfo("sneak-attack", "Rogue Sneak Attack"),
    FeatureTypeInfo("rage", "Barbarian Rage"),
    FeatureTypeInfo("smite", "Paladin Divine Smite"),
    FeatureTypeInfo("hexblade", "Hexblade's Curse"),
    FeatureTypeInfo("crit-range", "Improved Critical"),
    FeatureTypeInfo("maneuvers", "Battle Master Maneuvers"),
    FeatureTypeInfo("brutal-critical", "Brutal Critical"),
    FeatureTypeInfo("legacy-all", "All Features (legacy)"),
]

FEATURE_TYPE_IDS = tuple(t.id for t in FEATURE_TYPES)


# ============================================================
# 怪物
# ============================================================
MONSTERS: List[Monster] = [
    Monster("goblin", "Goblin", "1/4", 15,
            {"str": 8, "dex": 14, "con": 10, "int": 10, "wis": 8, "cha": 8}),
    Monster("orc", "Orc", "1/2", 13,
            {"str": 16, "dex": 12, "con": 16, "int": 7, "wis": 11, "cha": 10}),
    Monster("ogre", "Ogre", "2", 11,
            {"str": 19, "dex": 8, "con": 16, "int": 5, "wis": 7, "cha": 7}),
    Monster("adult-red-dragon", "Adult Red Dragon", "17", 19,
            {"str": 27, "dex": 10, "con": 25, "int": 16, "wis": 13, "cha": 21},
            resistances=["slashing"]),
    Monster("skeleton", "Skeleton", "1/4", 13,
            {"str": 10, "dex": 14, "con": 15, "int": 6, "wis": 8, "cha": 5},
            resistances=["piercing", "slashing"], vulnerabilities=["bludgeoning"]),
]

_MONSTERS_BY_ID: Dict[str, Monster] = {m.id: m for m in MONSTERS}


# ============================================================
# 查询
# ============================================================

def get_weapon(weapon_id: Optional[str]) -> Weapon:
    """按 id 查找武器，未知时回退到第一把（长剑）."""
    weapon = _WEAPONS_BY_ID.get(weapon_id or "")
    if weapon is None:
        logger.warning(f"未知武器 {weapon_id!r}，回退到 {WEAPON_PRESETS[0].id}")
        return WEAPON_PRESETS[0]
    return weapon


def get_fighting_style(style_id: Optional[str]) -> FightingStyle:
    """按 id 查找战斗风格，未知时回退到第一项（防御）."""
    style = _STYLES_BY_ID.get(style_id or "")
    if style is None:
        logger.warning(f"未知战斗风格 {style_id!r}，回退到 {FIGHTING_STYLES[0].id}")
        return FIGHTING_STYLES[0]
    return style


def normalize_feature_type(feature_type: Optional[str]) -> str:
    """规范化特性类型.

    - 缺失（旧版节点）视为 legacy-all
    - 未知字符串回退到第一项 fighting-style
    """
    if feature_type is None or feature_type == "":
        return "legacy-all"
    if feature_type not in FEATURE_TYPE_IDS:
        logger.warning(f"未知特性类型 {feature_type!r}，回退到 {FEATURE_TYPE_IDS[0]}")
        return FEATURE_TYPE_IDS[0]
    return feature_type


def get_monster(monster_id: Optional[str]) -> Optional[Monster]:
    """按 id 查找怪物，未知返回 None."""
    if not monster_id:
        return None
    monster = _MONSTERS_BY_ID.get(monster_id)
    if monster is None:
        logger.warning(f"未知怪物 {monster_id!r}，忽略目标预填")
    return monster
