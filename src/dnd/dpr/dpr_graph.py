"""
DPR 计算 LangGraph 图定义

每个输出节点单独跑一次流水线:

    START
      │
      ▼
    ┌────────────────┐
    │ collect_inputs │   直接入边 -> 攻击 / 专长 / 特性 / 增益
    └───────┬────────┘
     无攻击 │ 有攻击
       ▼    │    ▼
  ┌─────────┐  ┌────────────────────┐
  │no_attack│  │ aggregate_features │
  └────┬────┘  └─────────┬──────────┘
       │                 ▼
       │       ┌────────────────────┐
       │       │ evaluate_sequences │   每条攻击序列的期望伤害
       │       └─────────┬──────────┘
       │                 ▼
       │       ┌────────────────────┐
       │       │   resolve_rules    │   偷袭/至圣斩/战技/抗性，每轮一次
       │       └─────────┬──────────┘
       │                 ▼
       │       ┌────────────────────┐
       │       │   build_summary    │
       │       └─────────┬──────────┘
       ▼                 ▼
                END

整张图的重算是纯函数：不修改输入图，返回带新摘要的副本。
"""  # noqa: D212, D415

import logging
from typing import Dict, Optional

from langgraph.graph import END, StateGraph

from src.common import Context
from src.dnd.dpr.dpr_node import (
    aggregate_features_node,
    build_summary_node,
    collect_inputs_node,
    evaluate_sequences_node,
    no_attack_node,
    resolve_rules_node,
    route_after_collect,
)
from src.dnd.dpr.dpr_state import DPRGraph, DPRState, OutputNode, Summary

logger = logging.getLogger(__name__)


def build_dpr_graph() -> StateGraph:
    """构建单个输出节点的 DPR 计算图."""
    workflow = StateGraph(DPRState, context_schema=Context)

    # ============================================================
    # 添加节点
    # ============================================================
    workflow.add_node("collect_inputs", collect_inputs_node)
    workflow.add_node("no_attack", no_attack_node)
    workflow.add_node("aggregate_features", aggregate_features_node)
    workflow.add_node("evaluate_sequences", evaluate_sequences_node)
    workflow.add_node("resolve_rules", resolve_rules_node)
    workflow.add_node("build_summary", build_summary_node)

    # ============================================================
    # 添加边
    # ============================================================
    workflow.set_entry_point("collect_inputs")

    # collect_inputs -> 条件路由 (无攻击 / 正常计算)
    workflow.add_conditional_edges(
        "collect_inputs",
        route_after_collect,
        {
            "no_attack": "no_attack",
            "aggregate_features": "aggregate_features",
        },
    )
    workflow.add_edge("no_attack", END)

    workflow.add_edge("aggregate_features", "evaluate_sequences")
    workflow.add_edge("evaluate_sequences", "resolve_rules")
    workflow.add_edge("resolve_rules", "build_summary")
    workflow.add_edge("build_summary", END)

    return workflow


# 编译后的计算图
dpr_graph = build_dpr_graph().compile()


# ============================================================
# 入口函数
# ============================================================

def evaluate_output(
    graph: DPRGraph, output_id: str, context: Optional[Context] = None
) -> Optional[Summary]:
    """计算单个输出节点的摘要；没有攻击节点接入时返回 None."""
    result = dpr_graph.invoke(
        {"graph": graph, "output_id": output_id},
        context=context or Context(),
    )
    return result.get("summary")


def evaluate_graph(
    graph: DPRGraph, context: Optional[Context] = None
) -> Dict[str, Optional[Summary]]:
    """计算图中所有输出节点，返回 {输出节点 id: 摘要}."""
    ctx = context or Context()
    return {node.id: evaluate_output(graph, node.id, ctx) for node in graph.output_nodes()}


def recompute_graph(graph: DPRGraph, context: Optional[Context] = None) -> DPRGraph:
    """重算并返回新图：每个输出节点的摘要整体替换，原图不变."""
    summaries = evaluate_graph(graph, context)
    nodes = [
        node.model_copy(update={"data": node.data.model_copy(update={"summary": summaries[node.id]})})
        if isinstance(node, OutputNode)
        else node
        for node in graph.nodes
    ]
    computed = sum(1 for s in summaries.values() if s is not None)
    logger.info(f"重算完成: {len(summaries)} 个输出节点, {computed} 个有结果")
    return graph.model_copy(update={"nodes": nodes})


# ============================================================
# 调试工具
# ============================================================

def print_summaries(path: str) -> None:
    """读取图文件并打印每个输出节点的结果（调试用）."""
    from pathlib import Path

    from src.common import setup_logging
    from src.dnd.dpr.config import LOG_LEVEL
    from src.dnd.dpr.storage import load_graph

    setup_logging(LOG_LEVEL)
    graph = load_graph(Path(path).read_text(encoding="utf-8"))
    for output_id, summary in evaluate_graph(graph).items():
        if summary is None:
            print(f"{output_id}: 无数据（未接入攻击节点）")
            continue
        print(f"{output_id}: DPR {summary.dpr:.2f} | +{summary.to_hit:g} vs AC{summary.target_ac} "
              f"| 命中 {summary.p_hit:.0%} | 攻击 {summary.attacks}/轮")
        for note in summary.notes:
            print(f"  - {note}")


if __name__ == "__main__":
    import sys

    print_summaries(sys.argv[1])
