"""DPR（每轮期望伤害）计算模块."""
from src.dnd.dpr.dpr_graph import (
    build_dpr_graph,
    dpr_graph,
    evaluate_graph,
    evaluate_output,
    recompute_graph,
)
from src.dnd.dpr.dpr_state import DPRGraph, FeatureBundle, Settings, Summary
from src.dnd.dpr.dpr_tools import estimate_dpr, get_dpr_tools, hit_chance, lookup_weapon
from src.dnd.dpr.storage import dump_graph, dumps_graph, load_graph, seed_graph

__all__ = [
    # Graph
    "build_dpr_graph",
    "dpr_graph",
    "evaluate_graph",
    "evaluate_output",
    "recompute_graph",
    # Models
    "DPRGraph",
    "FeatureBundle",
    "Settings",
    "Summary",
    # Storage
    "dump_graph",
    "dumps_graph",
    "load_graph",
    "seed_graph",
    # Tools
    "hit_chance",
    "estimate_dpr",
    "lookup_weapon",
    "get_dpr_tools",
]
