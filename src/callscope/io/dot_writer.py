"""Graphviz DOT serialisation of reduced call graphs."""

from __future__ import annotations

from itertools import count
from typing import Iterator, List

from callscope.analysis.reduction import Cluster, ReducedEdge, ReducedGraph, ReducedNode

INDENT = "    "

GRAPH_ATTRS = {
    "rankdir": "LR",
    "newrank": "true",
    "fontname": "Helvetica",
    "fontsize": "12",
    "nodesep": "0.3",
    "ranksep": "0.6",
    "pad": "0.2",
    "labelloc": "t",
}
NODE_DEFAULTS = {
    "shape": "box",
    "style": "rounded,filled",
    "fillcolor": "#fefce8",
    "fontname": "Helvetica",
    "fontsize": "10",
    "penwidth": "0.6",
}
EDGE_DEFAULTS = {"color": "#475569", "arrowsize": "0.6", "penwidth": "0.7"}

FOCUS_FILL = "#bae6fd"
STD_FILL = "#dcfce7"
SYNTHETIC_FILL = "#e2e8f0"
PKG_CLUSTER_FILL = "#f8fafc"
TYPE_CLUSTER_FILL = "#eef2ff"
FOCUS_CLUSTER_FILL = "#e0f2fe"


def quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _attrs(attributes: dict[str, str]) -> str:
    return ", ".join(f"{key}={quote(value)}" for key, value in attributes.items())


def _node_statement(node: ReducedNode) -> str:
    attributes = {"label": node.label, "tooltip": node.node_id}
    if node.focused:
        attributes["fillcolor"] = FOCUS_FILL
        attributes["penwidth"] = "1.5"
    elif node.std:
        attributes["fillcolor"] = STD_FILL
    if node.synthetic:
        attributes["fillcolor"] = SYNTHETIC_FILL
        attributes["style"] = "dashed,rounded,filled"
    return f"{quote(node.node_id)} [{_attrs(attributes)}];"


def _edge_statement(edge: ReducedEdge) -> str:
    attributes: dict[str, str] = {}
    if edge.elided:
        attributes["style"] = "dotted"
    elif edge.dynamic:
        attributes["style"] = "dashed"
    if edge.sites:
        attributes["tooltip"] = "\n".join(edge.sites)
    statement = f"{quote(edge.caller)} -> {quote(edge.callee)}"
    if attributes:
        statement += f" [{_attrs(attributes)}]"
    return statement + ";"


def _cluster_lines(
    cluster: Cluster,
    nodes: dict[str, ReducedNode],
    counter: Iterator[int],
    depth: int,
) -> List[str]:
    pad = INDENT * depth
    inner = INDENT * (depth + 1)
    fill = TYPE_CLUSTER_FILL if cluster.kind == "type" else PKG_CLUSTER_FILL
    if cluster.focused:
        fill = FOCUS_CLUSTER_FILL
    lines = [f"{pad}subgraph cluster_{next(counter)} {{"]
    lines.append(f"{inner}label={quote(cluster.label)};")
    lines.append(f"{inner}tooltip={quote(f'{cluster.kind}: {cluster.key}')};")
    lines.append(f'{inner}style="rounded,filled";')
    lines.append(f"{inner}fillcolor={quote(fill)};")
    lines.append(f"{inner}penwidth={quote('1.4' if cluster.focused else '0.6')};")
    for node_id in cluster.nodes:
        lines.append(inner + _node_statement(nodes[node_id]))
    for child in cluster.clusters:
        lines.extend(_cluster_lines(child, nodes, counter, depth + 1))
    lines.append(f"{pad}}}")
    return lines


def write_dot(graph: ReducedGraph) -> str:
    """Serialise ``graph`` to DOT. Output depends only on the graph's content."""

    nodes = {node.node_id: node for node in graph.nodes}
    counter = count()

    title = graph.program or "callgraph"
    if graph.focus:
        title = f"{title} (focus: {graph.focus})"

    lines = ["digraph callgraph {"]
    lines.append(f"{INDENT}graph [{_attrs({**GRAPH_ATTRS, 'label': title})}];")
    lines.append(f"{INDENT}node [{_attrs(NODE_DEFAULTS)}];")
    lines.append(f"{INDENT}edge [{_attrs(EDGE_DEFAULTS)}];")
    lines.append("")

    for cluster in graph.clusters:
        lines.extend(_cluster_lines(cluster, nodes, counter, 1))
    for node_id in graph.loose_nodes:
        lines.append(INDENT + _node_statement(nodes[node_id]))
    if graph.edges:
        lines.append("")
    for edge in graph.edges:
        lines.append(INDENT + _edge_statement(edge))

    lines.append("}")
    return "\n".join(lines) + "\n"


def render_dot(graph: ReducedGraph) -> bytes:
    return write_dot(graph).encode("utf-8")


__all__ = ["quote", "render_dot", "write_dot"]
