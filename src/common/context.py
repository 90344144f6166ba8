"""Define the configurable parameters for the DPR engine."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from typing import Optional

from dotenv import load_dotenv

from src.dnd.dnd_state import CharacterSnapshot

load_dotenv()

logger = logging.getLogger(__name__)


@dataclass(kw_only=True)
class Context:
    """The runtime context passed to every DPR pipeline node."""

    character: Optional[CharacterSnapshot] = field(
        default=None,
        metadata={
            "description": "Snapshot from the character builder "
            "(totalLevel, strMod, dexMod). Falls back to the graph settings when absent."
        },
    )

    monster_id: Optional[str] = field(
        default=None,
        metadata={"description": "Monster catalog id used to pre-fill the target."},
    )

    manual_override: bool = field(
        default=False,
        metadata={
            "description": "When enabled, the graph's own targetAC/resist/vuln "
            "settings win over the monster entry."
        },
    )

    default_level: int = field(
        default=5,
        metadata={
            "description": "Attacker level used when seeding a fresh graph.",
            "env": "DPR_DEFAULT_LEVEL",
        },
    )

    default_str: int = field(
        default=16,
        metadata={
            "description": "Strength score used when seeding a fresh graph.",
            "env": "DPR_DEFAULT_STR",
        },
    )

    default_dex: int = field(
        default=14,
        metadata={
            "description": "Dexterity score used when seeding a fresh graph.",
            "env": "DPR_DEFAULT_DEX",
        },
    )

    default_target_ac: int = field(
        default=16,
        metadata={
            "description": "Target armor class used when seeding a fresh graph.",
            "env": "DPR_DEFAULT_TARGET_AC",
        },
    )

    def __post_init__(self) -> None:
        """Fetch env vars for attributes that were not passed as args."""
        for f in fields(self):
            env_name = f.metadata.get("env")
            if not f.init or not env_name:
                continue

            if getattr(self, f.name) != f.default:
                continue

            raw = os.environ.get(env_name)
            if raw is None:
                continue
            try:
                setattr(self, f.name, int(raw))
            except ValueError:
                logger.warning(f"Ignoring invalid {env_name}={raw!r}, keeping {f.default}")
