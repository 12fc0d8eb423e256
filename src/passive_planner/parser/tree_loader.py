"""Load tree definitions from JSON files."""

import json
import logging
from pathlib import Path
from typing import Any

from passive_planner.errors import GraphParseError
from passive_planner.graph.tree_graph import TreeGraph

logger = logging.getLogger(__name__)


def load_tree_payload(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise GraphParseError(f"Cannot read tree file {path}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise GraphParseError(f"Tree file {path} is not valid JSON: {exc}") from exc


def load_tree(path: Path) -> TreeGraph:
    """Read and ingest a tree definition file."""
    graph = TreeGraph.from_dict(load_tree_payload(path))
    logger.info("Loaded %s: %d nodes, %d edges", path.name, len(graph), graph.edge_count)
    return graph
