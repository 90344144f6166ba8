"""DPR 图的持久化格式：加载（含旧版迁移）、导出、默认种子图.

加载永远不会抛异常：格式损坏时记录日志并返回种子图。
"""
import json
import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from src.common import Context
from src.dnd.dpr.config import STORAGE_VERSION
from src.dnd.dpr.dpr_state import DPRGraph

logger = logging.getLogger(__name__)

_NODE_TYPES = {"attack", "feats", "features", "buffs", "output"}


def seed_graph(context: Optional[Context] = None) -> DPRGraph:
    """默认起始图：对决风格长剑 + 专长/特性/增益 -> 一个输出."""
    ctx = context or Context()
    return DPRGraph.model_validate(
        {
            "version": STORAGE_VERSION,
            "nodes": [
                {"id": "atk-1", "type": "attack", "position": {"x": 80, "y": 20},
                 "data": {"weaponId": "longsword", "actionType": "action", "grip": "main"}},
                {"id": "style-1", "type": "features", "position": {"x": 80, "y": 200},
                 "data": {"featureType": "fighting-style", "styleId": "dueling"}},
                {"id": "feat-1", "type": "feats", "position": {"x": 80, "y": 380},
                 "data": {"gwm": False, "ss": False, "pam": False, "cbe": False}},
                {"id": "buff-1", "type": "buffs", "position": {"x": 80, "y": 560},
                 "data": {"bless": False, "d6onhit": False}},
                {"id": "out-1", "type": "output", "position": {"x": 620, "y": 240},
                 "data": {"summary": None}},
            ],
            "edges": [
                {"id": "e1", "source": "atk-1", "target": "out-1"},
                {"id": "e2", "source": "style-1", "target": "out-1"},
                {"id": "e3", "source": "feat-1", "target": "out-1"},
                {"id": "e4", "source": "buff-1", "target": "out-1"},
            ],
            "settings": {
                "level": ctx.default_level,
                "str": ctx.default_str,
                "dex": ctx.default_dex,
                "targetAC": ctx.default_target_ac,
                "advMode": "normal",
                "useVersatile": False,
                "resist": "none",
                "vuln": "none",
            },
        }
    )


def _present(**values: Any) -> Dict[str, Any]:
    """去掉值为 None 的键，让模型使用默认值."""
    return {k: v for k, v in values.items() if v is not None}


def migrate_node(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """旧版节点迁移；无法识别的节点返回 None.

    - fighterStyle -> features(fighting-style)
    - weapon -> attack(action, main)
    """
    node_type = raw.get("type")
    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}

    if node_type == "fighterStyle":
        return {
            **raw,
            "type": "features",
            "data": {"featureType": "fighting-style", **_present(styleId=data.get("styleId"))},
        }
    if node_type == "weapon":
        return {
            **raw,
            "type": "attack",
            "data": {**_present(weaponId=data.get("weaponId")), "actionType": "action", "grip": "main"},
        }
    if node_type in _NODE_TYPES:
        return {**raw, "data": data}

    logger.warning(f"丢弃未知类型节点 {raw.get('id')!r} (type={node_type!r})")
    return None


def _clean_nodes(raw_nodes: List[Any]) -> List[Dict[str, Any]]:
    nodes = []
    for raw in raw_nodes:
        if not isinstance(raw, dict) or not isinstance(raw.get("id"), str):
            logger.warning(f"丢弃格式错误的节点: {raw!r}")
            continue
        migrated = migrate_node(raw)
        if migrated is not None:
            # 输出节点的摘要是派生数据，加载时丢弃，等待重新计算
            if migrated["type"] == "output":
                migrated["data"] = {"summary": None}
            nodes.append(migrated)
    return nodes


def _clean_edges(raw_edges: List[Any]) -> List[Dict[str, Any]]:
    edges = []
    for i, raw in enumerate(raw_edges):
        if (
            isinstance(raw, dict)
            and isinstance(raw.get("source"), str)
            and isinstance(raw.get("target"), str)
        ):
            edges.append({"id": str(raw.get("id") or f"e{i + 1}"), "source": raw["source"],
                          "target": raw["target"]})
        else:
            logger.warning(f"丢弃格式错误的边: {raw!r}")
    return edges


def load_graph(
    raw: Union[str, bytes, Dict[str, Any], None],
    context: Optional[Context] = None,
) -> DPRGraph:
    """从 JSON 文本或字典加载图；任何格式问题都回退到种子图.

    Args:
        raw: 持久化数据
        context: 种子图使用的默认值

    Returns:
        DPRGraph
    """
    try:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except json.JSONDecodeError as e:
        logger.warning(f"⚠️ 图数据不是合法 JSON，使用种子图: {e}")
        return seed_graph(context)

    if not isinstance(payload, dict):
        logger.warning("⚠️ 图数据不是对象，使用种子图")
        return seed_graph(context)

    raw_nodes = payload.get("nodes")
    raw_edges = payload.get("edges")
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        logger.warning("⚠️ nodes/edges 不是数组，使用种子图")
        return seed_graph(context)

    version = payload.get("version", STORAGE_VERSION)
    if version != STORAGE_VERSION:
        logger.info(f"加载版本 {version!r} 的图，按版本 {STORAGE_VERSION} 解析")

    settings = payload.get("settings")
    try:
        graph = DPRGraph.model_validate(
            {
                "version": STORAGE_VERSION,
                "nodes": _clean_nodes(raw_nodes),
                "edges": _clean_edges(raw_edges),
                "settings": settings if isinstance(settings, dict) else {},
            }
        )
    except ValidationError as e:
        logger.warning(f"⚠️ 图数据校验失败，使用种子图: {e.error_count()} 个错误")
        return seed_graph(context)

    logger.info(f"加载图: {len(graph.nodes)} 个节点, {len(graph.edges)} 条边")
    return graph


def dump_graph(graph: DPRGraph) -> Dict[str, Any]:
    """导出为持久化格式（camelCase 键，包含输出节点的摘要）."""
    return graph.model_dump(mode="json", by_alias=True)


def dumps_graph(graph: DPRGraph) -> str:
    return json.dumps(dump_graph(graph), ensure_ascii=False)
