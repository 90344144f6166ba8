"""单条攻击序列的期望伤害计算."""
from dataclasses import dataclass
from typing import List, Tuple

from src.dnd.dnd_state import AdvMode, AttackerProfile, Grip, TargetProfile
from src.dnd.dpr.catalog import Weapon, get_weapon
from src.dnd.dpr.config import (
    ARCHERY_TO_HIT,
    BLESS_TO_HIT,
    DUELING_DAMAGE,
    POWER_ATTACK_DAMAGE,
    POWER_ATTACK_PENALTY,
    RIDER_DIE_AVG,
)
from src.dnd.dpr.dice import dice_average, die_average, single_die_faces
from src.dnd.dpr.dpr_state import (
    AttackData,
    BuffsData,
    FeatsData,
    FeatureBundle,
    SequenceResult,
)
from src.dnd.dpr.probability import (
    attacks_per_round,
    hit_probabilities,
    proficiency_bonus,
    rage_bonus,
)


@dataclass(frozen=True)
class AttackContext:
    """同一个输出节点下所有攻击序列共享的输入."""

    attacker: AttackerProfile
    target: TargetProfile
    adv_mode: AdvMode
    use_versatile: bool
    feats: FeatsData
    buffs: BuffsData
    features: FeatureBundle
    has_off_hand: bool = False  # 是否有副手序列（决定对决风格是否生效）


def _uses_versatile(weapon: Weapon, grip: Grip, ctx: AttackContext) -> bool:
    # 副手持有武器时不可能双手持握
    if not weapon.versatile or grip == Grip.OFF or ctx.has_off_hand:
        return False
    return grip == Grip.BOTH or ctx.use_versatile or weapon.two_handed


def _power_attack(weapon: Weapon, feats: FeatsData) -> str | None:
    """返回生效的强力攻击专长（gwm / ss），不生效返回 None."""
    if feats.gwm and weapon.melee and "gwm" in weapon.tags:
        return "gwm"
    if feats.ss and weapon.ranged and "ss" in weapon.tags:
        return "ss"
    return None


def evaluate_sequence(
    node_id: str, attack: AttackData, ctx: AttackContext
) -> Tuple[SequenceResult, List[str]]:
    """计算一条攻击序列的命中、单次期望伤害和每轮期望伤害.

    Args:
        node_id: 攻击节点 id
        attack: 攻击节点配置
        ctx: 共享输入

    Returns:
        (序列结果, 说明文字)
    """
    notes: List[str] = []
    weapon = get_weapon(attack.weapon_id)
    style = ctx.features.style_id
    level = ctx.attacker.level
    prof = proficiency_bonus(level)

    # 1. 属性调整值
    uses_dex = weapon.ranged or weapon.finesse
    ability_mod = ctx.attacker.dex_mod if uses_dex else ctx.attacker.str_mod

    # 2. 命中加值
    to_hit: float = prof + ability_mod
    if style == "archery" and weapon.ranged:
        to_hit += ARCHERY_TO_HIT
        notes.append("Archery: +2 to hit applied.")
    if ctx.buffs.bless:
        to_hit += BLESS_TO_HIT
        notes.append("Bless: +≈2.5 to hit EV.")
    power_attack = _power_attack(weapon, ctx.feats)
    if power_attack == "gwm":
        to_hit -= POWER_ATTACK_PENALTY
        notes.append("GWM: -5 to hit/+10 dmg.")
    elif power_attack == "ss":
        to_hit -= POWER_ATTACK_PENALTY
        notes.append("Sharpshooter: -5 to hit/+10 dmg.")

    # 3. 命中率 / 暴击率
    p_hit, p_crit = hit_probabilities(
        to_hit, ctx.target.ac, ctx.features.crit_range, ctx.adv_mode
    )

    # 4. 伤害骰
    versatile = _uses_versatile(weapon, attack.grip, ctx)
    dice = weapon.versatile if versatile else weapon.dice
    wielded_two_handed = weapon.two_handed or versatile
    gwf = style == "great-weapon" and weapon.melee and wielded_two_handed
    if gwf:
        notes.append("Great Weapon Fighting: reroll 1s & 2s estimated.")
    dice_avg = dice_average(dice, great_weapon_fighting=gwf)

    # 5. 单次命中的基础伤害
    applied_mod = ability_mod
    if attack.grip == Grip.OFF:
        if style == "two-weapon":
            notes.append("Two-Weapon Fighting: ability modifier added to off-hand attack.")
        else:
            applied_mod = 0
            notes.append(f"Off-hand {weapon.name}: ability modifier not added.")

    flat_bonus: float = 0
    if (
        style == "dueling"
        and weapon.melee
        and not wielded_two_handed
        and attack.grip == Grip.MAIN
        and not ctx.has_off_hand
    ):
        flat_bonus += DUELING_DAMAGE
        notes.append("Dueling: +2 damage with 1H melee.")
    if power_attack:
        flat_bonus += POWER_ATTACK_DAMAGE
    if ctx.features.hexblade:
        flat_bonus += prof
        notes.append(f"Hexblade's Curse: +{prof} damage per hit.")
    if ctx.features.rage and weapon.melee:
        bonus = rage_bonus(level)
        flat_bonus += bonus
        notes.append(f"Rage: +{bonus} melee damage per hit.")

    rider_avg = RIDER_DIE_AVG if ctx.buffs.rider_d6 else 0.0
    if ctx.buffs.rider_d6:
        notes.append("Hex/Hunter's Mark: +1d6 on hit.")

    base_damage = dice_avg + applied_mod + flat_bonus + rider_avg

    # 6. 暴击只多掷一次武器骰，不翻倍调整值
    crit_dice_avg = dice_avg
    p_non_crit_hit = max(p_hit - p_crit, 0.0)
    damage_per_attack = p_non_crit_hit * base_damage + p_crit * (base_damage + crit_dice_avg)

    # 7. 凶蛮重击
    if ctx.features.brutal_crit_dice and weapon.melee:
        extra = ctx.features.brutal_crit_dice * die_average(single_die_faces(dice))
        damage_per_attack += p_crit * extra
        notes.append(f"Brutal Critical: +{ctx.features.brutal_crit_dice} weapon die on crit.")

    # 8. 每轮攻击次数
    attacks = attacks_per_round(level, attack.action_type)

    result = SequenceResult(
        node_id=node_id,
        weapon=weapon,
        action_type=attack.action_type,
        grip=attack.grip,
        to_hit=to_hit,
        p_hit=p_hit,
        p_crit=p_crit,
        attacks=attacks,
        ability_mod=applied_mod,
        flat_bonus=flat_bonus,
        rider_avg=rider_avg,
        base_damage=base_damage,
        crit_dice_avg=crit_dice_avg,
        damage_per_attack=damage_per_attack,
        dpr=damage_per_attack * attacks,
    )
    return result, notes
