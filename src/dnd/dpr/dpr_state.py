import operator
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.common.utils import normalize_adv_mode
from src.dnd.dnd_state import (
    ActionType,
    AdvMode,
    AttackerProfile,
    DamageTypeOption,
    Grip,
    TargetProfile,
)
from src.dnd.dpr.catalog import Weapon, normalize_feature_type
from src.dnd.dpr.config import STORAGE_VERSION


class _CamelModel(BaseModel):
    """持久化格式使用 camelCase 键，Python 侧使用 snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _enum_or_default(value: Any, enum_cls: Type[Enum], default: Enum) -> Any:
    """未知枚举值回退到默认值，而不是让整张图校验失败."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default


# 1. 全局设置
class Settings(_CamelModel):
    level: int = 5
    str_score: int = Field(default=16, alias="str")
    dex_score: int = Field(default=14, alias="dex")
    target_ac: int = Field(default=16, alias="targetAC")
    adv_mode: AdvMode = AdvMode.NORMAL
    use_versatile: bool = False
    resist: DamageTypeOption = DamageTypeOption.NONE
    vuln: DamageTypeOption = DamageTypeOption.NONE

    @field_validator("level", mode="before")
    @classmethod
    def _clamp_level(cls, v: Any) -> Any:
        if isinstance(v, (int, float)):
            return max(1, min(20, int(v)))
        return v

    @field_validator("adv_mode", mode="before")
    @classmethod
    def _normalize_adv_mode(cls, v: Any) -> Any:
        if isinstance(v, AdvMode):
            return v
        return normalize_adv_mode(v if isinstance(v, str) else None)

    @field_validator("resist", "vuln", mode="before")
    @classmethod
    def _damage_type_option(cls, v: Any) -> Any:
        return _enum_or_default(v, DamageTypeOption, DamageTypeOption.NONE)


# 2. 输出节点上的结果摘要
class Summary(_CamelModel):
    to_hit: float
    adv_mode: AdvMode
    target_ac: int = Field(alias="targetAC")
    p_hit: float
    p_crit: float
    attacks: int
    dpr: float
    notes: List[str] = Field(default_factory=list)


# ============================================================
# 节点数据
# ============================================================

class Position(_CamelModel):
    x: float = 0.0
    y: float = 0.0


class AttackData(_CamelModel):
    """一条攻击序列：同一把武器、同一个动作槽位在一轮内的重复使用."""

    weapon_id: str = "longsword"
    action_type: ActionType = ActionType.ACTION
    grip: Grip = Grip.MAIN

    @field_validator("weapon_id", mode="before")
    @classmethod
    def _weapon_id(cls, v: Any) -> Any:
        return v if isinstance(v, str) and v else "longsword"

    @field_validator("action_type", mode="before")
    @classmethod
    def _action_type(cls, v: Any) -> Any:
        return _enum_or_default(v, ActionType, ActionType.ACTION)

    @field_validator("grip", mode="before")
    @classmethod
    def _grip(cls, v: Any) -> Any:
        return _enum_or_default(v, Grip, Grip.MAIN)


class FeatsData(_CamelModel):
    gwm: bool = False  # 巨武器大师
    ss: bool = False  # 神射手
    pam: bool = False  # 长柄武器大师
    cbe: bool = False  # 弩专家


class BuffsData(_CamelModel):
    bless: bool = False  # 祝福术
    rider_d6: bool = Field(default=False, alias="d6onhit")  # 咒法/猎人印记


class OutputData(_CamelModel):
    summary: Optional[Summary] = None


# 3. 特性节点：按 featureType 区分的封闭变体
class FightingStyleFeature(_CamelModel):
    feature_type: Literal["fighting-style"] = "fighting-style"
    style_id: str = "dueling"

    @field_validator("style_id", mode="before")
    @classmethod
    def _style_id(cls, v: Any) -> Any:
        return v if isinstance(v, str) and v else "dueling"


class SneakAttackFeature(_CamelModel):
    feature_type: Literal["sneak-attack"] = "sneak-attack"


class RageFeature(_CamelModel):
    feature_type: Literal["rage"] = "rage"


class SmiteFeature(_CamelModel):
    feature_type: Literal["smite"] = "smite"
    slot_level: int = 1
    undead_or_fiend: bool = False


class HexbladeFeature(_CamelModel):
    feature_type: Literal["hexblade"] = "hexblade"


class CritRangeFeature(_CamelModel):
    feature_type: Literal["crit-range"] = "crit-range"
    crit_range: int = 19


class ManeuversFeature(_CamelModel):
    feature_type: Literal["maneuvers"] = "maneuvers"
    maneuvers_per_round: int = 1
    maneuver_die: int = 8


class BrutalCriticalFeature(_CamelModel):
    feature_type: Literal["brutal-critical"] = "brutal-critical"
    brutal_crit_dice: int = 1


class LegacyAllFeature(_CamelModel):
    """旧版"全部特性"节点：一个节点同时携带多个字段，仅为兼容导入的旧图保留."""

    feature_type: Literal["legacy-all"] = "legacy-all"
    style_id: Optional[str] = None
    sneak: bool = False
    rage: bool = False
    smite: bool = False
    slot_level: int = 0
    undead_or_fiend: bool = False
    hexblade: bool = False
    crit_range: int = 20
    maneuvers_per_round: int = 0
    maneuver_die: int = 0
    brutal_crit_dice: int = 0

    @field_validator("style_id", mode="before")
    @classmethod
    def _style_id(cls, v: Any) -> Any:
        return v if isinstance(v, str) else None


FeatureData = Annotated[
    Union[
        FightingStyleFeature,
        SneakAttackFeature,
        RageFeature,
        SmiteFeature,
        HexbladeFeature,
        CritRangeFeature,
        ManeuversFeature,
        BrutalCriticalFeature,
        LegacyAllFeature,
    ],
    Field(discriminator="feature_type"),
]


# ============================================================
# 图结构
# ============================================================

class _NodeBase(_CamelModel):
    id: str
    position: Position = Field(default_factory=Position)


class AttackNode(_NodeBase):
    type: Literal["attack"] = "attack"
    data: AttackData = Field(default_factory=AttackData)


class FeatsNode(_NodeBase):
    type: Literal["feats"] = "feats"
    data: FeatsData = Field(default_factory=FeatsData)


class FeaturesNode(_NodeBase):
    type: Literal["features"] = "features"
    data: FeatureData = Field(default_factory=FightingStyleFeature)

    @field_validator("data", mode="before")
    @classmethod
    def _normalize_feature_type(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        data = dict(v)
        raw_type = data.pop("feature_type", None) or data.get("featureType")
        data["featureType"] = normalize_feature_type(raw_type)
        # 旧版至圣斩用 smiteDice 表示骰数，这里换算成法术位环阶
        if data["featureType"] == "legacy-all" and "smiteDice" in data and "slotLevel" not in data:
            try:
                data["slotLevel"] = max(1, int(data["smiteDice"]) - 1)
            except (TypeError, ValueError):
                data["slotLevel"] = 1
        return data


class BuffsNode(_NodeBase):
    type: Literal["buffs"] = "buffs"
    data: BuffsData = Field(default_factory=BuffsData)


class OutputNode(_NodeBase):
    type: Literal["output"] = "output"
    data: OutputData = Field(default_factory=OutputData)


GraphNode = Annotated[
    Union[AttackNode, FeatsNode, FeaturesNode, BuffsNode, OutputNode],
    Field(discriminator="type"),
]


class Edge(_CamelModel):
    id: str = ""
    source: str
    target: str


class DPRGraph(_CamelModel):
    version: int = STORAGE_VERSION
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)

    def node_map(self) -> Dict[str, GraphNode]:
        return {n.id: n for n in self.nodes}

    def output_nodes(self) -> List[OutputNode]:
        return [n for n in self.nodes if isinstance(n, OutputNode)]


# ============================================================
# 计算中间结果
# ============================================================

@dataclass(frozen=True)
class FeatureBundle:
    """多个特性节点合并后的规范化修正集合.

    合并规则全部满足交换律/幂等：取首个非空、OR、min、max、求和。
    """

    style_id: Optional[str] = None
    sneak_attack: bool = False
    rage: bool = False
    smite: bool = False
    smite_slot_level: int = 0
    smite_undead_or_fiend: bool = False
    hexblade: bool = False
    crit_range: int = 20
    maneuvers_per_round: int = 0
    maneuver_die: int = 0
    brutal_crit_dice: int = 0

    def merge(self, other: "FeatureBundle") -> "FeatureBundle":
        return FeatureBundle(
            style_id=self.style_id or other.style_id,
            sneak_attack=self.sneak_attack or other.sneak_attack,
            rage=self.rage or other.rage,
            smite=self.smite or other.smite,
            smite_slot_level=max(self.smite_slot_level, other.smite_slot_level),
            smite_undead_or_fiend=self.smite_undead_or_fiend or other.smite_undead_or_fiend,
            hexblade=self.hexblade or other.hexblade,
            crit_range=min(self.crit_range, other.crit_range),
            maneuvers_per_round=self.maneuvers_per_round + other.maneuvers_per_round,
            maneuver_die=max(self.maneuver_die, other.maneuver_die),
            brutal_crit_dice=max(self.brutal_crit_dice, other.brutal_crit_dice),
        )


@dataclass(frozen=True)
class SequenceResult:
    """单条攻击序列的期望伤害."""

    node_id: str
    weapon: Weapon
    action_type: ActionType
    grip: Grip
    to_hit: float
    p_hit: float
    p_crit: float
    attacks: int
    ability_mod: int  # 实际加到伤害上的调整值（副手无双武器战斗时为 0）
    flat_bonus: float
    rider_avg: float
    base_damage: float
    crit_dice_avg: float
    damage_per_attack: float
    dpr: float

    @property
    def p_non_crit_hit(self) -> float:
        return max(self.p_hit - self.p_crit, 0.0)


@dataclass(frozen=True)
class RoundResult:
    """跨序列规则处理后的整轮结果."""

    dpr: float
    attacks: int
    notes: List[str] = field(default_factory=list)


# ============================================================
# 流水线状态 (传入所有 langgraph 节点的上下文)
# ============================================================

@dataclass
class DPRState:
    # --- 输入 ---
    graph: DPRGraph = field(default_factory=DPRGraph)
    output_id: str = ""

    # --- collect_inputs ---
    attacker: Optional[AttackerProfile] = None
    target: Optional[TargetProfile] = None
    attack_nodes: List[AttackNode] = field(default_factory=list)
    feats: FeatsData = field(default_factory=FeatsData)
    feature_nodes: List[FeaturesNode] = field(default_factory=list)
    buffs: BuffsData = field(default_factory=BuffsData)

    # --- 计算结果 ---
    features: FeatureBundle = field(default_factory=FeatureBundle)
    sequences: List[SequenceResult] = field(default_factory=list)
    round_result: Optional[RoundResult] = None
    notes: Annotated[List[str], operator.add] = field(default_factory=list)
    summary: Optional[Summary] = None
