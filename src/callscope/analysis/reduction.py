"""Reduction of the whole-program call graph to a renderable, clustered view."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

import networkx as nx

from callscope.analysis.graph_loader import AnalysisResult, FunctionNode, Package
from callscope.analysis.options import GROUP_PKG, GROUP_TYPE, NormalizedOptions
from callscope.errors import ReductionError

LOGGER = logging.getLogger(__name__)

NodeId = str


@dataclass(frozen=True, slots=True)
class ReducedNode:
    node_id: NodeId
    name: str
    label: str
    package: str
    package_name: str
    recv: str | None = None
    synthetic: bool = False
    std: bool = False
    focused: bool = False


@dataclass(frozen=True, slots=True)
class ReducedEdge:
    caller: NodeId
    callee: NodeId
    sites: tuple[str, ...] = ()
    dynamic: bool = False
    elided: bool = False


@dataclass(frozen=True, slots=True)
class Cluster:
    kind: str
    key: str
    label: str
    package: str
    nodes: tuple[NodeId, ...] = ()
    clusters: tuple["Cluster", ...] = ()
    focused: bool = False


@dataclass(frozen=True, slots=True)
class ReducedGraph:
    nodes: tuple[ReducedNode, ...]
    edges: tuple[ReducedEdge, ...]
    clusters: tuple[Cluster, ...] = ()
    loose_nodes: tuple[NodeId, ...] = ()
    focus: str | None = None
    group: tuple[str, ...] = ()
    program: str = ""

    @property
    def node_ids(self) -> set[NodeId]:
        return {node.node_id for node in self.nodes}

    def node(self, node_id: NodeId) -> ReducedNode:
        for node in self.nodes:
            if node.node_id == node_id:
                return node
        raise KeyError(node_id)

    def iter_clusters(self) -> Iterator[tuple[Cluster, Optional[Cluster]]]:
        """Yield ``(cluster, parent)`` pairs depth first, parents before children."""

        stack: list[tuple[Cluster, Optional[Cluster]]] = [(cluster, None) for cluster in reversed(self.clusters)]
        while stack:
            cluster, parent = stack.pop()
            yield cluster, parent
            stack.extend((child, cluster) for child in reversed(cluster.clusters))

    def node_clusters(self) -> dict[NodeId, tuple[Cluster, ...]]:
        """Map each clustered node to its enclosing clusters, outermost first."""

        chains: dict[NodeId, tuple[Cluster, ...]] = {}

        def walk(cluster: Cluster, chain: tuple[Cluster, ...]) -> None:
            chain = chain + (cluster,)
            for node_id in cluster.nodes:
                chains[node_id] = chain
            for child in cluster.clusters:
                walk(child, chain)

        for cluster in self.clusters:
            walk(cluster, ())
        return chains

    def to_networkx(self) -> nx.DiGraph:
        graph = nx.DiGraph(program=self.program, focus=self.focus)
        for node in self.nodes:
            graph.add_node(
                node.node_id,
                name=node.name,
                label=node.label,
                package=node.package,
                recv=node.recv,
                synthetic=node.synthetic,
                std=node.std,
                focused=node.focused,
            )
        for edge in self.edges:
            graph.add_edge(edge.caller, edge.callee, sites=list(edge.sites), dynamic=edge.dynamic, elided=edge.elided)
        return graph


def _has_prefix(path: str, prefixes: Sequence[str]) -> bool:
    return any(path.startswith(prefix) for prefix in prefixes)


def _function(graph: nx.DiGraph, node: NodeId) -> FunctionNode:
    return graph.nodes[node]["function"]


def reachable_functions(analysis: AnalysisResult) -> set[NodeId]:
    """Return every function reachable from an entry point, entry points included."""

    reached: set[NodeId] = set()
    for entry in analysis.entry_points:
        if entry in reached:
            continue
        reached.add(entry)
        reached |= nx.descendants(analysis.graph, entry)
    return reached


def _working_graph(analysis: AnalysisResult, nodes: set[NodeId]) -> nx.DiGraph:
    """Collapse parallel call-site edges between ``nodes`` into a mutable DiGraph."""

    working = nx.DiGraph()
    for node in nodes:
        working.add_node(node, function=analysis.function(node))
    for caller, callee, data in analysis.graph.subgraph(nodes).edges(data=True):
        site = data.get("site") or ""
        dynamic = bool(data.get("dynamic"))
        if working.has_edge(caller, callee):
            attrs = working.edges[caller, callee]
            if site:
                attrs["sites"].add(site)
            attrs["dynamic"] = attrs["dynamic"] or dynamic
        else:
            working.add_edge(caller, callee, sites={site} if site else set(), dynamic=dynamic, elided=False)
    return working


def _real_successors(working: nx.DiGraph, node: NodeId, synthetic: set[NodeId]) -> tuple[set[NodeId], bool]:
    """Return the non-synthetic functions reached through synthetic-only paths.

    The flag is set when any call along those paths is dynamic.
    """

    found: set[NodeId] = set()
    dynamic = False
    seen = {node}
    stack = [node]
    while stack:
        current = stack.pop()
        for successor in working.successors(current):
            if successor in synthetic and successor in seen:
                continue
            dynamic = dynamic or working.edges[current, successor]["dynamic"]
            if successor in synthetic:
                seen.add(successor)
                stack.append(successor)
            else:
                found.add(successor)
    return found, dynamic


def _elide_synthetic(working: nx.DiGraph) -> None:
    """Remove synthetic wrappers that lead to at most one real function.

    Callers of a removed wrapper are bridged to its single real callee. Wrappers
    that fan out to several real functions stay in the graph.
    """

    synthetic = {node for node in working if _function(working, node).is_synthetic}
    if not synthetic:
        return

    targets: dict[NodeId, tuple[set[NodeId], bool]] = {}
    for node in sorted(synthetic):
        real, dynamic = _real_successors(working, node, synthetic)
        if len(real) <= 1:
            targets[node] = (real, dynamic)

    for node, (real, dynamic) in sorted(targets.items()):
        if not real:
            continue
        (target,) = real
        for caller in list(working.predecessors(node)):
            if caller in targets:
                continue
            attrs = working.edges[caller, node]
            if working.has_edge(caller, target):
                existing = working.edges[caller, target]
                existing["sites"] |= attrs["sites"]
                existing["dynamic"] = existing["dynamic"] or attrs["dynamic"] or dynamic
            else:
                working.add_edge(
                    caller,
                    target,
                    sites=set(attrs["sites"]),
                    dynamic=attrs["dynamic"] or dynamic,
                    elided=True,
                )

    LOGGER.debug("Elided %d of %d synthetic functions", len(targets), len(synthetic))
    working.remove_nodes_from(targets)


def _passes_path_filters(package: str, ignore: Sequence[str], include: Sequence[str]) -> bool:
    if ignore and _has_prefix(package, ignore):
        return False
    if include and not _has_prefix(package, include):
        return False
    return True


def _apply_limit(working: nx.DiGraph, limit: Sequence[str], depth: int, entry_points: Iterable[NodeId]) -> None:
    """Drop functions nested more than ``depth`` calls deep inside limited packages.

    Entry points and functions called from outside the limited packages start at
    the first level. So do functions with no callers left.
    """

    limited = {node for node in working if _has_prefix(_function(working, node).package, limit)}
    if not limited:
        return

    entries = set(entry_points)
    boundary = {
        node
        for node in limited
        if node in entries
        or working.in_degree(node) == 0
        or any(pred not in limited for pred in working.predecessors(node))
    }
    levels: dict[NodeId, int] = {}
    if boundary:
        levels = nx.multi_source_dijkstra_path_length(working.subgraph(limited), boundary, cutoff=depth - 1)
    dropped = limited - levels.keys()
    if dropped:
        LOGGER.debug("Limit dropped %d functions beyond depth %d", len(dropped), depth)
        working.remove_nodes_from(dropped)


def _focus_subgraph(working: nx.DiGraph, focus: Package) -> nx.DiGraph:
    focus_nodes = {node for node in working if _function(working, node).package == focus.path}
    if not focus_nodes:
        raise ReductionError(f"focus package {focus.path} has no functions left after filtering")

    keep = set(focus_nodes)
    for node in focus_nodes:
        keep |= nx.ancestors(working, node)
        keep |= nx.descendants(working, node)
    return working.subgraph(keep).copy()


def _node_label(function: FunctionNode, package_name: str, group: Sequence[str]) -> str:
    label = function.name
    if function.recv and GROUP_TYPE not in group:
        label = f"({function.recv}).{label}"
    if GROUP_PKG not in group:
        label = f"{package_name}.{label}"
    return label


def _cluster_path(function: FunctionNode, group: Sequence[str]) -> tuple[tuple[str, str, str], ...]:
    path: list[tuple[str, str, str]] = []
    for key in group:
        if key == GROUP_PKG:
            path.append((GROUP_PKG, function.package, function.package))
        elif key == GROUP_TYPE and function.recv:
            type_name = function.recv.lstrip("*")
            path.append((GROUP_TYPE, f"{function.package}.{type_name}", type_name))
    return tuple(path)


@dataclass
class _ClusterBuilder:
    kind: str
    key: str
    label: str
    package: str
    nodes: list[NodeId] = field(default_factory=list)
    children: dict[tuple[str, str], "_ClusterBuilder"] = field(default_factory=dict)

    def freeze(self, focus: str | None) -> Cluster:
        return Cluster(
            kind=self.kind,
            key=self.key,
            label=self.label,
            package=self.package,
            nodes=tuple(self.nodes),
            clusters=tuple(child.freeze(focus) for _, child in sorted(self.children.items())),
            focused=focus is not None and self.package == focus,
        )


def _build_clusters(
    working: nx.DiGraph,
    group: Sequence[str],
    focus: str | None,
) -> tuple[tuple[Cluster, ...], tuple[NodeId, ...]]:
    roots: dict[tuple[str, str], _ClusterBuilder] = {}
    loose: list[NodeId] = []

    for node in sorted(working):
        function = _function(working, node)
        path = _cluster_path(function, group)
        if not path:
            loose.append(node)
            continue
        (kind, key, label), *nested = path
        builder = roots.setdefault((kind, key), _ClusterBuilder(kind, key, label, function.package))
        for kind, key, label in nested:
            builder = builder.children.setdefault((kind, key), _ClusterBuilder(kind, key, label, function.package))
        builder.nodes.append(node)

    clusters = tuple(builder.freeze(focus) for _, builder in sorted(roots.items()))
    return clusters, tuple(loose)


def reduce_graph(
    analysis: AnalysisResult,
    options: NormalizedOptions,
    focus: Package | None = None,
) -> ReducedGraph:
    """
    Select, filter and group the functions of ``analysis`` according to ``options``.

    Only functions reachable from an entry point are considered. Standard library
    and synthetic suppression run first, then the limit depth is applied, then
    the ignore/include path filters, then focus pruning. Limit levels are counted
    before the path filters so filtering a caller never hides a limited package.
    Grouping only affects presentation.
    """

    reachable = reachable_functions(analysis)
    working = _working_graph(analysis, reachable)

    if options.nostd:
        working.remove_nodes_from([node for node in list(working) if _function(working, node).std])
    if options.nointer:
        _elide_synthetic(working)
    if options.limit:
        _apply_limit(working, options.limit, options.limit_depth, analysis.entry_points)

    working.remove_nodes_from(
        [
            node
            for node in list(working)
            if not _passes_path_filters(_function(working, node).package, options.ignore, options.include)
        ]
    )
    if focus is not None:
        working = _focus_subgraph(working, focus)

    if working.number_of_nodes() == 0:
        raise ReductionError("no functions left to render after filtering")

    LOGGER.info(
        "Reduced %d reachable functions to %d nodes / %d edges",
        len(reachable),
        working.number_of_nodes(),
        working.number_of_edges(),
    )

    focus_path = focus.path if focus is not None else None
    packages = analysis.packages()
    nodes: list[ReducedNode] = []
    for node in sorted(working):
        function = _function(working, node)
        package = packages.get(function.package)
        package_name = package.name if package is not None else function.package
        nodes.append(
            ReducedNode(
                node_id=node,
                name=function.name,
                label=_node_label(function, package_name, options.group),
                package=function.package,
                package_name=package_name,
                recv=function.recv,
                synthetic=function.is_synthetic,
                std=function.std,
                focused=focus_path is not None and function.package == focus_path,
            )
        )

    edges = tuple(
        ReducedEdge(
            caller=caller,
            callee=callee,
            sites=tuple(sorted(data["sites"])),
            dynamic=data["dynamic"],
            elided=data["elided"],
        )
        for caller, callee, data in sorted(working.edges(data=True), key=lambda item: (item[0], item[1]))
    )

    clusters, loose = _build_clusters(working, options.group, focus_path)
    return ReducedGraph(
        nodes=tuple(nodes),
        edges=edges,
        clusters=clusters,
        loose_nodes=loose,
        focus=focus_path,
        group=tuple(options.group),
        program=analysis.program,
    )


__all__ = [
    "Cluster",
    "ReducedEdge",
    "ReducedGraph",
    "ReducedNode",
    "reachable_functions",
    "reduce_graph",
]
