"""伤害骰期望值计算（只算均值，不投骰）."""
import re
from typing import List, Tuple

DICE_AVG = {4: 2.5, 6: 3.5, 8: 4.5, 10: 5.5, 12: 6.5}

# 巨武器战斗风格：重投 1、2 后每颗骰子的期望提升
GWF_BOOST = {4: 0.75, 6: 0.6667, 8: 0.625, 10: 0.6, 12: 0.5833}

_CHUNK_PATTERN = re.compile(r"^(\d*)d(\d*)$")


def parse_dice(dice: str) -> List[Tuple[int, int]]:
    """解析 "2d6+1d4" 形式的骰子表达式.

    Returns:
        [(数量, 面数), ...]；不认识的面数按 d6 处理，数量缺失记为 0
    """
    chunks: List[Tuple[int, int]] = []
    for chunk in dice.lower().split("+"):
        chunk = chunk.strip()
        if not chunk:
            continue
        match = _CHUNK_PATTERN.match(chunk)
        if not match:
            continue
        count = int(match.group(1)) if match.group(1) else 0
        faces = int(match.group(2)) if match.group(2) else 6
        if faces not in DICE_AVG:
            faces = 6
        chunks.append((count, faces))
    return chunks


def die_average(faces: int) -> float:
    """单颗 d{faces} 的均值."""
    return (faces + 1) / 2


def dice_average(dice: str, great_weapon_fighting: bool = False) -> float:
    """骰子表达式的期望值，可选巨武器战斗风格修正."""
    total = 0.0
    for count, faces in parse_dice(dice):
        boost = GWF_BOOST[faces] if great_weapon_fighting else 0.0
        total += count * (DICE_AVG[faces] + boost)
    return total


def single_die_faces(dice: str) -> int:
    """表达式第一组骰子的面数（凶蛮重击只加一颗这种骰子）."""
    chunks = parse_dice(dice)
    return chunks[0][1] if chunks else 6
