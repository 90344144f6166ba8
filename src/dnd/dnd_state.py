from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


# 1. 伤害类型
class DamageType(str, Enum):
    SLASHING = "slashing"  # 挥砍
    PIERCING = "piercing"  # 穿刺
    BLUDGEONING = "bludgeoning"  # 钝击


# 1.1 抗性/易伤选项（none 表示不生效）
class DamageTypeOption(str, Enum):
    NONE = "none"
    SLASHING = "slashing"
    PIERCING = "piercing"
    BLUDGEONING = "bludgeoning"


# 2. 掷骰模式
class AdvMode(str, Enum):
    NORMAL = "normal"  # 正常
    ADV = "adv"  # 优势：两次取高
    DIS = "dis"  # 劣势：两次取低


# 3. 动作经济
class ActionType(str, Enum):
    ACTION = "action"  # 主动作（可触发额外攻击）
    BONUS = "bonus"  # 附赠动作
    FREE = "free"  # 自由动作
    REACTION = "reaction"  # 反应


# 3.1 持握方式
class Grip(str, Enum):
    MAIN = "main"  # 主手
    OFF = "off"  # 副手
    BOTH = "both"  # 双手


# 4. 角色构建器提供的快照
@dataclass
class CharacterSnapshot:
    """角色构建器导出的最小属性集合，DPR 引擎只读取这些字段."""

    total_level: int  # 总等级
    str_mod: int  # 力量调整值
    dex_mod: int  # 敏捷调整值


# 5. 攻击者属性（引擎实际使用）
@dataclass(frozen=True)
class AttackerProfile:
    level: int
    str_mod: int
    dex_mod: int


# 6. 怪物图鉴条目
@dataclass(frozen=True)
class Monster:
    """目标怪物数据，可以预填目标 AC / 抗性 / 易伤."""

    id: str
    name: str
    cr: str  # 挑战等级，如 "1/4"
    ac: int
    abilities: Dict[str, int]  # {"str": 8, "dex": 14, ...}
    resistances: List[str] = field(default_factory=list)
    vulnerabilities: List[str] = field(default_factory=list)


# 7. 目标属性（引擎实际使用）
@dataclass(frozen=True)
class TargetProfile:
    ac: int
    resist: DamageTypeOption = DamageTypeOption.NONE
    vuln: DamageTypeOption = DamageTypeOption.NONE
    abilities: Dict[str, int] = field(default_factory=dict)
    name: Optional[str] = None  # 来自怪物图鉴时为怪物名称
