"""DPR 计算流水线节点实现."""
import logging
from typing import Any, Dict, List, Literal

from langgraph.runtime import Runtime

from src.common import Context, finite_or_zero, unique_in_order
from src.dnd.dnd_state import Grip
from src.dnd.dpr.damage import AttackContext, evaluate_sequence
from src.dnd.dpr.dpr_state import (
    AttackNode,
    BuffsNode,
    DPRState,
    FeatsNode,
    FeaturesNode,
    SequenceResult,
    Summary,
)
from src.dnd.dpr.features import aggregate_features
from src.dnd.dpr.profiles import resolve_attacker, resolve_target
from src.dnd.dpr.rules import resolve_round

logger = logging.getLogger(__name__)


def collect_inputs_node(state: DPRState, runtime: Runtime[Context]) -> Dict[str, Any]:
    """收集输入节点：只看指向该输出节点的直接入边，按节点类型分组.

    不做传递闭包，所以图中的环不会影响计算。
    """
    graph = state.graph
    node_map = graph.node_map()
    source_ids = unique_in_order(
        e.source for e in graph.edges if e.target == state.output_id and e.source != state.output_id
    )
    sources = [node_map[s] for s in source_ids if s in node_map]

    attack_nodes = [n for n in sources if isinstance(n, AttackNode)]
    feature_nodes = [n for n in sources if isinstance(n, FeaturesNode)]
    # 专长和增益节点只取第一个
    feats_node = next((n for n in sources if isinstance(n, FeatsNode)), None)
    buffs_node = next((n for n in sources if isinstance(n, BuffsNode)), None)

    ctx = runtime.context or Context()
    update: Dict[str, Any] = {
        "attacker": resolve_attacker(graph.settings, ctx.character),
        "target": resolve_target(graph.settings, ctx.monster_id, ctx.manual_override),
        "attack_nodes": attack_nodes,
        "feature_nodes": feature_nodes,
    }
    if feats_node is not None:
        update["feats"] = feats_node.data
    if buffs_node is not None:
        update["buffs"] = buffs_node.data
    return update


def route_after_collect(state: DPRState) -> Literal["no_attack", "aggregate_features"]:
    """没有攻击节点时直接输出空摘要."""
    if not state.attack_nodes:
        return "no_attack"
    return "aggregate_features"


def no_attack_node(state: DPRState) -> Dict[str, Any]:
    return {"summary": None}


def aggregate_features_node(state: DPRState) -> Dict[str, Any]:
    """合并特性节点."""
    features = aggregate_features(state.feature_nodes)
    notes: List[str] = []
    if features.style_id == "defense":
        notes.append("Defense: +1 AC (not factored into DPR).")
    return {"features": features, "notes": notes}


def evaluate_sequences_node(state: DPRState) -> Dict[str, Any]:
    """逐条计算攻击序列."""
    ctx = AttackContext(
        attacker=state.attacker,
        target=state.target,
        adv_mode=state.graph.settings.adv_mode,
        use_versatile=state.graph.settings.use_versatile,
        feats=state.feats,
        buffs=state.buffs,
        features=state.features,
        has_off_hand=any(n.data.grip == Grip.OFF for n in state.attack_nodes),
    )
    sequences: List[SequenceResult] = []
    notes: List[str] = []
    for node in state.attack_nodes:
        result, sequence_notes = evaluate_sequence(node.id, node.data, ctx)
        sequences.append(result)
        notes.extend(sequence_notes)
    return {"sequences": sequences, "notes": notes}


def resolve_rules_node(state: DPRState) -> Dict[str, Any]:
    """每轮一次的跨序列规则."""
    round_result = resolve_round(
        state.sequences,
        state.features,
        state.feats,
        state.target,
        state.attacker.level,
    )
    return {"round_result": round_result, "notes": round_result.notes}


def build_summary_node(state: DPRState) -> Dict[str, Any]:
    """组装最终摘要."""
    first = state.sequences[0]
    dpr = finite_or_zero(state.round_result.dpr)
    if dpr != state.round_result.dpr:
        logger.warning(f"输出 {state.output_id} 的 DPR 不是有限数，已置为 0")

    summary = Summary(
        to_hit=max(s.to_hit for s in state.sequences),
        adv_mode=state.graph.settings.adv_mode,
        target_ac=state.target.ac,
        p_hit=first.p_hit,
        p_crit=first.p_crit,
        attacks=state.round_result.attacks,
        dpr=dpr,
        notes=unique_in_order(state.notes),
    )
    logger.debug(f"输出 {state.output_id}: DPR={summary.dpr:.2f}, 攻击次数={summary.attacks}")
    return {"summary": summary}
