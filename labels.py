"""Loading of the root-label table (versioned root URL → compilation name)."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


def load_root_labels(path: str | Path) -> dict[str, str]:
    """Read the label table from a YAML mapping.

    A missing file yields an empty table: labels are optional and roots
    without one are indexed with no compilation name.

    Raises:
        ValueError: if the file does not hold a mapping
    """
    p = Path(path)
    if not p.exists():
        logger.warning("Root label file %s not found; versioned roots will have no labels", p)
        return {}

    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping of root URL to label, got {type(raw).__name__}")

    labels: dict[str, str] = {}
    for root, label in raw.items():
        if label is None:
            continue
        labels[str(root)] = str(label)
    return labels


__all__ = ["load_root_labels"]
