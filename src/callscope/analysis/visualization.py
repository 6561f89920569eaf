"""Static previews of reduced call graphs."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import matplotlib.pyplot as plt
import networkx as nx

from callscope.analysis.reduction import ReducedGraph

UNGROUPED = "(ungrouped)"


def _group_of(graph: ReducedGraph) -> dict[str, str]:
    chains = graph.node_clusters()
    groups: dict[str, str] = {}
    for node in graph.nodes:
        chain = chains.get(node.node_id)
        groups[node.node_id] = chain[0].label if chain else UNGROUPED
    return groups


def _group_colors(groups: set[str]) -> dict[str, tuple]:
    palette = plt.get_cmap("tab20")
    colors = {}
    for idx, group in enumerate(sorted(groups)):
        colors[group] = palette(idx % palette.N)
    return colors


def plot_reduced_graph(
    graph: ReducedGraph,
    output_path: Path,
    *,
    layout: str = "spring",
    show_labels: bool = True,
    title: str | None = None,
) -> Path:
    """
    Draw ``graph`` into ``output_path`` (PNG) using matplotlib.

    Nodes are coloured by their outermost cluster; focused nodes get a thick
    outline and dynamic calls are drawn dashed.
    """

    if not graph.nodes:
        raise ValueError("Graph contains no nodes to visualize.")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    nx_graph = graph.to_networkx()
    groups = _group_of(graph)
    colors = _group_colors(set(groups.values()))
    node_order = list(nx_graph.nodes())
    node_colours = [colors[groups[node]] for node in node_order]
    linewidths = [2.5 if nx_graph.nodes[node]["focused"] else 0.5 for node in node_order]

    if layout == "kamada-kawai":
        positions = nx.kamada_kawai_layout(nx_graph)
    else:
        positions = nx.spring_layout(nx_graph, seed=42, iterations=100)

    static_edges = [(u, v) for u, v, data in nx_graph.edges(data=True) if not data["dynamic"]]
    dynamic_edges = [(u, v) for u, v, data in nx_graph.edges(data=True) if data["dynamic"]]

    plt.figure(figsize=(12, 12))
    nx.draw_networkx_edges(nx_graph, positions, edgelist=static_edges, alpha=0.4, width=0.8)
    nx.draw_networkx_edges(nx_graph, positions, edgelist=dynamic_edges, alpha=0.4, width=0.8, style="dashed")
    nx.draw_networkx_nodes(
        nx_graph,
        positions,
        nodelist=node_order,
        node_color=node_colours,
        node_size=220,
        edgecolors="#0f172a",
        linewidths=linewidths,
    )

    if show_labels and nx_graph.number_of_nodes() <= 150:
        labels = {node: data["label"] for node, data in nx_graph.nodes(data=True)}
        nx.draw_networkx_labels(nx_graph, positions, labels=labels, font_size=7)

    if title is None:
        summary = Counter(groups.values())
        title = ", ".join(f"{group}: {count}" for group, count in sorted(summary.items()))

    plt.title(title)
    plt.axis("off")
    plt.tight_layout()
    plt.savefig(output_path, dpi=200)
    plt.close()
    return output_path


__all__ = ["plot_reduced_graph"]
