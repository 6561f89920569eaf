"""Loading of call graph analysis artefacts into an immutable analysis result."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence

import networkx as nx

from callscope.errors import AnalysisError, NoEntryPointError, PackageErrorsError

LOGGER = logging.getLogger(__name__)

MAIN_PACKAGE = "main"
MAIN_FUNCTION = "main"


@dataclass(frozen=True, slots=True)
class Package:
    path: str
    name: str
    std: bool = False


@dataclass(frozen=True, slots=True)
class FunctionNode:
    node_id: str
    name: str
    package: str
    recv: str | None = None
    synthetic: str | None = None
    std: bool = False

    @property
    def is_synthetic(self) -> bool:
        return bool(self.synthetic)


class AnalysisResult:
    """Read-only whole-program call graph shared by every render request."""

    def __init__(
        self,
        graph: nx.MultiDiGraph,
        packages: Mapping[str, Package],
        entry_points: Sequence[str],
        *,
        program: str = "",
    ) -> None:
        missing = [node for node in entry_points if node not in graph]
        if missing:
            raise AnalysisError(f"Unknown entry points: {', '.join(sorted(missing))}")
        self.graph = nx.freeze(graph)
        self._packages = MappingProxyType(dict(packages))
        self.entry_points = tuple(entry_points)
        self.program = program

    def function(self, node_id: str) -> FunctionNode:
        return self.graph.nodes[node_id]["function"]

    def functions(self) -> Iterator[FunctionNode]:
        for _, data in self.graph.nodes(data=True):
            yield data["function"]

    def packages(self) -> Mapping[str, Package]:
        return self._packages

    def imported_package(self, path: str) -> Package | None:
        return self._packages.get(path)

    def packages_named(self, name: str) -> list[Package]:
        return [pkg for pkg in self._packages.values() if pkg.name == name]

    def __repr__(self) -> str:
        return (
            f"AnalysisResult(program={self.program!r}, functions={self.graph.number_of_nodes()}, "
            f"edges={self.graph.number_of_edges()}, entry_points={len(self.entry_points)})"
        )


def _package_name(path: str) -> str:
    return path.rstrip("/").rsplit("/", 1)[-1]


def _collect_packages(entries: Iterable[dict]) -> dict[str, Package]:
    packages: dict[str, Package] = {}
    errors: list[str] = []
    for entry in entries:
        path = entry.get("path")
        if not path:
            continue
        for message in entry.get("errors") or []:
            LOGGER.error("%s: %s", path, message)
            errors.append(f"{path}: {message}")
        packages[path] = Package(path=path, name=entry.get("name") or _package_name(path), std=bool(entry.get("std")))
    if errors:
        raise PackageErrorsError(errors)
    return packages


def main_entry_points(graph: nx.MultiDiGraph, packages: Mapping[str, Package]) -> list[str]:
    """Return the ``main`` functions of every package named ``main``."""

    mains: list[str] = []
    for node, data in graph.nodes(data=True):
        function: FunctionNode = data["function"]
        package = packages.get(function.package)
        if package is None or package.name != MAIN_PACKAGE:
            continue
        if function.name == MAIN_FUNCTION and function.recv is None and not function.is_synthetic:
            mains.append(node)
    if not mains:
        raise NoEntryPointError("no main packages")
    return sorted(mains)


def build_analysis(payload: dict, *, program: str | None = None) -> AnalysisResult:
    """Build an :class:`AnalysisResult` from an already parsed artefact."""

    packages = _collect_packages(payload.get("packages", []))
    graph = nx.MultiDiGraph()

    for entry in payload.get("functions", []):
        node_id = entry.get("id")
        package_path = entry.get("package")
        if not node_id or package_path is None:
            LOGGER.warning("Skipping function entry without id or package: %s", entry)
            continue
        if package_path not in packages:
            packages[package_path] = Package(path=package_path, name=_package_name(package_path))
        function = FunctionNode(
            node_id=node_id,
            name=entry.get("name") or node_id.rsplit(".", 1)[-1],
            package=package_path,
            recv=entry.get("recv") or None,
            synthetic=entry.get("synthetic") or None,
            std=packages[package_path].std,
        )
        graph.add_node(node_id, function=function)

    for edge in payload.get("edges", []):
        caller = edge.get("caller")
        callee = edge.get("callee")
        if caller is None or callee is None:
            continue
        for endpoint in (caller, callee):
            if endpoint not in graph:
                # Placeholder for a function the analysis referenced but did not describe.
                package_path, _, name = endpoint.rpartition(".")
                package_path = package_path or endpoint
                if package_path not in packages:
                    packages[package_path] = Package(path=package_path, name=_package_name(package_path))
                graph.add_node(
                    endpoint,
                    function=FunctionNode(
                        node_id=endpoint,
                        name=name or endpoint,
                        package=package_path,
                        std=packages[package_path].std,
                    ),
                )
        graph.add_edge(caller, callee, site=edge.get("site") or "", dynamic=bool(edge.get("dynamic")))

    entry_points = payload.get("entry_points")
    if not entry_points:
        entry_points = main_entry_points(graph, packages)

    result = AnalysisResult(
        graph,
        packages,
        entry_points,
        program=program if program is not None else payload.get("program", ""),
    )
    LOGGER.info("Loaded %r", result)
    return result


def load_analysis(path: Path) -> AnalysisResult:
    """Load an analysis artefact (JSON) emitted by the external call graph exporter."""

    with Path(path).open("r", encoding="utf-8") as handle:
        try:
            payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise AnalysisError(f"Malformed analysis artefact {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise AnalysisError(f"Malformed analysis artefact {path}: expected a JSON object")
    return build_analysis(payload, program=payload.get("program") or Path(path).stem)


__all__ = [
    "AnalysisResult",
    "FunctionNode",
    "Package",
    "build_analysis",
    "load_analysis",
    "main_entry_points",
]
