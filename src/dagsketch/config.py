"""
Layout Config

Fixed layout constants (node footprint, spacing, direction) and loading
them from YAML.
"""

from pathlib import Path
from typing import Literal
import logging

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

NODE_WIDTH = 172
NODE_HEIGHT = 36


class LayoutConfig(BaseModel):
    """Footprint and spacing used by the layout engine.

    Attributes:
        node_width: Nominal width reserved for every node
        node_height: Nominal height reserved for every node
        rank_sep: Horizontal gap between neighbouring ranks
        node_sep: Vertical gap between nodes of the same rank
        direction: Drawing direction, left-to-right only
        max_sweeps: Upper bound on barycenter ordering passes
    """
    node_width: float = Field(NODE_WIDTH, gt=0)
    node_height: float = Field(NODE_HEIGHT, gt=0)
    rank_sep: float = Field(50, ge=0)
    node_sep: float = Field(50, ge=0)
    direction: Literal["LR"] = "LR"
    max_sweeps: int = Field(24, ge=0)


def load_layout_config(path: Path) -> LayoutConfig:
    """
    Load a layout config from a YAML file.

    Args:
        path: YAML file holding any subset of LayoutConfig fields

    Returns:
        Validated LayoutConfig, defaults filled in

    Raises:
        ValueError: If the file is missing or its values are invalid
    """
    path = Path(path)
    if not path.exists():
        raise ValueError(f"Layout config not found: {path}")
    data = yaml.safe_load(path.read_text()) or {}
    config = LayoutConfig.model_validate(data)
    logger.info("Loaded layout config from %s: %s", path, config)
    return config
