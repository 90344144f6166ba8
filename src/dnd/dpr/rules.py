"""跨序列规则：每轮只结算一次的修正.

偷袭、至圣斩、战技、长柄/弩专家附赠攻击，以及抗性/易伤，
都在一个输出节点的全部攻击序列算完之后统一处理。
"""
import logging
import math
from typing import List, Optional

from src.dnd.dnd_state import ActionType, DamageTypeOption, TargetProfile
from src.dnd.dpr.config import D8_AVG, PAM_BUTT_DIE_AVG, SMITE_DICE_CAP, SNEAK_DIE_AVG
from src.dnd.dpr.dice import die_average
from src.dnd.dpr.dpr_state import FeatsData, FeatureBundle, RoundResult, SequenceResult
from src.dnd.dpr.probability import sneak_attack_dice

logger = logging.getLogger(__name__)

_DEFAULT_MANEUVER_DIE = 8


def _first_action_sequence(sequences: List[SequenceResult]) -> Optional[SequenceResult]:
    return next((s for s in sequences if s.action_type == ActionType.ACTION), None)


def sneak_attack_damage(
    sequences: List[SequenceResult],
    level: int,
    bonus_attack: Optional[SequenceResult] = None,
) -> float:
    """偷袭期望：每轮至多一次.

    P(至少一次命中) = 1 - Π(1 - pNonCritHit_i)^attacks_i，只统计灵巧或远程武器的序列，
    每次攻击视为独立伯努利试验。bonus_attack 是弩专家追加的一次攻击。
    """
    qualifying = [s for s in sequences if s.weapon.finesse or s.weapon.ranged]
    if not qualifying:
        return 0.0
    p_all_miss = math.prod((1 - s.p_non_crit_hit) ** s.attacks for s in qualifying)
    if bonus_attack is not None and (bonus_attack.weapon.finesse or bonus_attack.weapon.ranged):
        p_all_miss *= 1 - bonus_attack.p_non_crit_hit
    return (1 - p_all_miss) * sneak_attack_dice(level) * SNEAK_DIE_AVG


def smite_dice(slot_level: int, undead_or_fiend: bool) -> int:
    """至圣斩骰数：min(5, 环阶 + 1)，对不死/邪魔额外 +1d8."""
    dice = min(SMITE_DICE_CAP, slot_level + 1)
    return dice + 1 if undead_or_fiend else dice


def smite_damage(sequence: SequenceResult, dice: int) -> float:
    """按该序列自身的命中/暴击拆分计算一次至圣斩，暴击时骰子翻倍."""
    return (
        sequence.p_non_crit_hit * dice * D8_AVG
        + sequence.p_crit * dice * 2 * D8_AVG
    )


def maneuver_damage(sequence: SequenceResult, per_round: int, die: int) -> float:
    avg = die_average(die)
    return per_round * (sequence.p_non_crit_hit * avg + sequence.p_crit * avg * 2)


def polearm_butt_damage(sequence: SequenceResult) -> float:
    """长柄武器大师：附赠动作 1d4 柄击，沿用该序列的命中拆分与加值."""
    butt = PAM_BUTT_DIE_AVG + sequence.ability_mod + sequence.flat_bonus + sequence.rider_avg
    return sequence.p_non_crit_hit * butt + sequence.p_crit * (butt + PAM_BUTT_DIE_AVG)


def damage_multiplier(sequences: List[SequenceResult], target: TargetProfile) -> Optional[float]:
    """所有序列伤害类型一致时返回抗性/易伤倍率；类型混杂时返回 None（跳过）."""
    damage_types = {s.weapon.damage_type.value for s in sequences}
    if len(damage_types) != 1:
        return None
    damage_type = damage_types.pop()
    multiplier = 1.0
    if target.resist != DamageTypeOption.NONE and target.resist.value == damage_type:
        multiplier *= 0.5
    if target.vuln != DamageTypeOption.NONE and target.vuln.value == damage_type:
        multiplier *= 2
    return multiplier


def resolve_round(
    sequences: List[SequenceResult],
    features: FeatureBundle,
    feats: FeatsData,
    target: TargetProfile,
    level: int,
) -> RoundResult:
    """把所有序列的 DPR 汇总，并叠加每轮一次的规则."""
    notes: List[str] = []
    dpr = sum(s.dpr for s in sequences)
    attacks = sum(s.attacks for s in sequences)
    main_action = _first_action_sequence(sequences)
    bonus_action_free = not any(s.action_type == ActionType.BONUS for s in sequences)
    crossbow = None
    if feats.cbe and bonus_action_free:
        crossbow = next(
            (s for s in sequences if s.action_type == ActionType.ACTION and "cbe" in s.weapon.tags),
            None,
        )

    # 偷袭
    if features.sneak_attack:
        sneak = sneak_attack_damage(sequences, level, crossbow)
        if sneak:
            dpr += sneak
            notes.append(f"Sneak Attack: {sneak_attack_dice(level)}d6 once per round on hit.")
        else:
            notes.append("Sneak Attack: needs a finesse or ranged weapon, not applied.")

    # 至圣斩（只有主动作序列能触发）
    if features.smite:
        if main_action is not None:
            dice = smite_dice(max(1, features.smite_slot_level), features.smite_undead_or_fiend)
            dpr += smite_damage(main_action, dice)
            notes.append(f"Divine Smite: {dice}d8 once per round; crit doubles smite dice.")
        else:
            notes.append("Divine Smite: needs an action attack, not applied.")

    # 战技
    if features.maneuvers_per_round > 0 and main_action is not None:
        die = features.maneuver_die or _DEFAULT_MANEUVER_DIE
        dpr += maneuver_damage(main_action, features.maneuvers_per_round, die)
        notes.append(f"Maneuvers: {features.maneuvers_per_round} x d{die} per round.")

    # 长柄武器大师柄击
    if feats.pam and bonus_action_free:
        polearm = next(
            (
                s for s in sequences
                if s.action_type == ActionType.ACTION and s.weapon.melee and "pam" in s.weapon.tags
            ),
            None,
        )
        if polearm is not None:
            dpr += polearm_butt_damage(polearm)
            attacks += 1
            notes.append("Polearm Master: bonus 1d4 attack added.")

    # 弩专家附赠攻击
    if crossbow is not None:
        dpr += crossbow.damage_per_attack
        attacks += 1
        notes.append("Crossbow Expert: bonus attack added.")

    # 抗性 / 易伤
    multiplier = damage_multiplier(sequences, target)
    if multiplier is None:
        logger.debug("混合伤害类型，跳过抗性/易伤")
    elif multiplier != 1.0:
        damage_type = sequences[0].weapon.damage_type.value
        if target.resist.value == damage_type:
            notes.append(f"Target resists {damage_type} damage.")
        if target.vuln.value == damage_type:
            notes.append(f"Target vulnerable to {damage_type} damage.")
        dpr *= multiplier

    return RoundResult(dpr=dpr, attacks=attacks, notes=notes)
