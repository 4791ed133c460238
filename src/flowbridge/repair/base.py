"""Base protocol and shared context for graph repairs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from flowbridge.config import BridgeConfig
from flowbridge.ids import IdGenerator
from flowbridge.model.graph import GraphNode, NodeGraph

logger = logging.getLogger("flowbridge.repair")


@dataclass
class RepairContext:
    """State shared by the repairs of one sanitize run."""

    config: BridgeConfig
    ids: IdGenerator
    fixes: list[str] = field(default_factory=list)

    def record(self, message: str) -> None:
        logger.info("repair: %s", message)
        self.fixes.append(message)


class Repair(Protocol):
    """A graph-to-graph fix that is a no-op when there is nothing to fix."""

    name: str

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph: ...


def replace_nodes(graph: NodeGraph, nodes: list[GraphNode]) -> NodeGraph:
    return NodeGraph(nodes=nodes, styles=list(graph.styles), embeds=dict(graph.embeds))
