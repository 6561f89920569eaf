"""Dash application for exploring reduced call graphs, plus the DOT override endpoint."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple

import dash
import dash_cytoscape as cyto
import flask
from dash import Dash, Input, Output, dcc, html

from callscope.analysis.options import GROUP_KEYS, split_list
from callscope.analysis.reduction import Cluster, ReducedGraph
from callscope.errors import AmbiguousFocusError, CallscopeError
from callscope.io.graphviz import run_dot
from callscope.pipelines.render_session import RenderSession

PALETTE = [
    "#38bdf8",
    "#a855f7",
    "#ec4899",
    "#f97316",
    "#22d3ee",
    "#4ade80",
    "#facc15",
    "#fb7185",
]

LAYOUT_PRESETS = {
    "breadthfirst": {"name": "breadthfirst", "directed": True, "spacingFactor": 1.15, "padding": 25},
    "cose": {"name": "cose", "idealEdgeLength": 110, "nodeRepulsion": 4200, "nestingFactor": 1.2},
    "concentric": {"name": "concentric", "padding": 25},
}

STYLESHEET = [
    {
        "selector": "node",
        "style": {
            "label": "data(label)",
            "background-color": "data(color)",
            "color": "#e2e8f0",
            "text-outline-color": "rgba(15,23,42,0.85)",
            "text-outline-width": "2px",
            "font-size": "9px",
            "width": 20,
            "height": 20,
            "border-width": "1px",
            "border-color": "rgba(248,250,252,0.6)",
        },
    },
    {
        "selector": ".cluster",
        "style": {
            "background-color": "rgba(30, 41, 59, 0.55)",
            "background-opacity": 0.55,
            "border-color": "rgba(148, 163, 184, 0.45)",
            "border-width": 1,
            "shape": "round-rectangle",
            "text-valign": "top",
            "text-halign": "center",
            "font-size": "10px",
            "padding": "12px",
        },
    },
    {
        "selector": ".cluster-type",
        "style": {"background-color": "rgba(79, 70, 229, 0.25)", "border-style": "dashed"},
    },
    {
        "selector": "[?focused]",
        "style": {"border-width": 3, "border-color": "#f97316"},
    },
    {
        "selector": "[?synthetic]",
        "style": {"shape": "diamond", "opacity": 0.8},
    },
    {
        "selector": "[?std]",
        "style": {"shape": "round-rectangle"},
    },
    {
        "selector": "edge",
        "style": {
            "line-color": "#475569",
            "width": 1,
            "curve-style": "bezier",
            "target-arrow-color": "#38bdf8",
            "target-arrow-shape": "triangle",
            "opacity": 0.55,
        },
    },
    {
        "selector": "edge[?dynamic]",
        "style": {"line-style": "dashed"},
    },
    {
        "selector": "edge[?elided]",
        "style": {"line-style": "dotted"},
    },
]


def _package_colors(packages: Iterable[str]) -> Dict[str, str]:
    colors: Dict[str, str] = {}
    palette_len = len(PALETTE)
    for idx, package in enumerate(sorted(set(packages))):
        colors[package] = PALETTE[idx % palette_len]
    return colors


def _cluster_elements(graph: ReducedGraph) -> Tuple[List[dict], Dict[str, str]]:
    """Return compound-node elements for the clusters and each node's parent id."""

    elements: List[dict] = []
    parents: Dict[str, str] = {}

    def walk(cluster: Cluster, parent_id: Optional[str]) -> None:
        cluster_id = f"{parent_id}/" if parent_id else ""
        cluster_id += f"cluster:{cluster.kind}:{cluster.key}"
        data = {"id": cluster_id, "label": cluster.label, "focused": cluster.focused}
        if parent_id:
            data["parent"] = parent_id
        elements.append({"data": data, "classes": f"cluster cluster-{cluster.kind}"})
        for node_id in cluster.nodes:
            parents[node_id] = cluster_id
        for child in cluster.clusters:
            walk(child, cluster_id)

    for cluster in graph.clusters:
        walk(cluster, None)
    return elements, parents


def graph_elements(graph: ReducedGraph) -> List[dict]:
    """Convert a reduced graph into cytoscape elements."""

    elements, parents = _cluster_elements(graph)
    colors = _package_colors(node.package for node in graph.nodes)
    for node in graph.nodes:
        data = {
            "id": node.node_id,
            "label": node.label,
            "package": node.package,
            "color": colors[node.package],
            "focused": node.focused,
            "synthetic": node.synthetic,
            "std": node.std,
        }
        if node.node_id in parents:
            data["parent"] = parents[node.node_id]
        elements.append({"data": data})
    for idx, edge in enumerate(graph.edges):
        elements.append(
            {
                "data": {
                    "id": f"edge-{idx}",
                    "source": edge.caller,
                    "target": edge.callee,
                    "dynamic": edge.dynamic,
                    "elided": edge.elided,
                    "sites": ", ".join(edge.sites),
                }
            }
        )
    return elements


def _error_text(exc: CallscopeError) -> str:
    text = str(exc)
    if isinstance(exc, AmbiguousFocusError):
        text += "\n" + "\n".join(f" - {candidate}" for candidate in exc.candidates)
    return text


def register_routes(server: flask.Flask, session: RenderSession) -> None:
    """Expose DOT/SVG renders that honour the form-value override protocol."""

    def _render_request() -> bytes:
        return session.render(session.options_for(flask.request.values))

    @server.route("/callgraph.dot")
    def callgraph_dot() -> flask.Response:
        try:
            payload = _render_request()
        except CallscopeError as exc:
            return flask.Response(_error_text(exc), status=400, mimetype="text/plain")
        return flask.Response(payload, mimetype="text/vnd.graphviz")

    @server.route("/callgraph.svg")
    def callgraph_svg() -> flask.Response:
        try:
            payload = _render_request()
        except CallscopeError as exc:
            return flask.Response(_error_text(exc), status=400, mimetype="text/plain")
        try:
            image = run_dot(payload, "svg")
        except FileNotFoundError as exc:
            return flask.Response(str(exc), status=501, mimetype="text/plain")
        return flask.Response(image, mimetype="image/svg+xml")


def _control(label: str, component) -> html.Div:
    return html.Div([html.Label(label), component], className="control")


def create_app(session: RenderSession) -> Dash:
    baseline = session.baseline
    group_value = [key for key in split_list(baseline.group) if key in GROUP_KEYS]
    toggles = [name for name, enabled in (("nostd", baseline.nostd), ("nointer", baseline.nointer)) if enabled]

    app = dash.Dash(__name__)
    app.title = "Call Graph Explorer"
    register_routes(app.server, session)

    app.layout = html.Div(
        [
            html.Div(
                [
                    html.Div(
                        [
                            html.H1("Call Graph Explorer", className="title"),
                            html.P(session.analysis.program or "whole-program call graph", className="subtitle"),
                        ],
                        className="header",
                    ),
                    _control(
                        "Focus package",
                        dcc.Input(id="focus", type="text", value=baseline.focus, placeholder="path or name", debounce=True),
                    ),
                    _control(
                        "Group by",
                        dcc.Dropdown(
                            id="group",
                            options=[{"label": "package", "value": "pkg"}, {"label": "type", "value": "type"}],
                            value=group_value,
                            multi=True,
                            className="dropdown-control",
                        ),
                    ),
                    _control(
                        "Ignore prefixes",
                        dcc.Input(id="ignore", type="text", value=baseline.ignore, debounce=True),
                    ),
                    _control(
                        "Include prefixes",
                        dcc.Input(id="include", type="text", value=baseline.include, debounce=True),
                    ),
                    _control(
                        "Limit prefixes",
                        dcc.Input(id="limit", type="text", value=baseline.limit, debounce=True),
                    ),
                    _control(
                        "Limit depth",
                        dcc.Slider(
                            id="limit-depth",
                            min=1,
                            max=8,
                            step=1,
                            value=baseline.limit_depth,
                            tooltip={"placement": "bottom", "always_visible": True},
                        ),
                    ),
                    _control(
                        "Filters",
                        dcc.Checklist(
                            id="toggles",
                            options=[
                                {"label": "Hide standard library", "value": "nostd"},
                                {"label": "Hide synthetic wrappers", "value": "nointer"},
                            ],
                            value=toggles,
                            className="checklist",
                        ),
                    ),
                    _control(
                        "Graph layout",
                        dcc.Dropdown(
                            id="layout-mode",
                            options=[
                                {"label": "Call hierarchy", "value": "breadthfirst"},
                                {"label": "Force-directed (cose)", "value": "cose"},
                                {"label": "Concentric", "value": "concentric"},
                            ],
                            value="breadthfirst",
                            clearable=False,
                            className="dropdown-control",
                        ),
                    ),
                    html.Div(id="status", className="status"),
                ],
                className="sidebar",
            ),
            html.Div(
                [
                    dcc.Loading(
                        id="call-graph-loader",
                        type="default",
                        children=cyto.Cytoscape(
                            id="call-graph",
                            style={"width": "100%", "height": "100%", "minHeight": "80vh"},
                            layout=LAYOUT_PRESETS["breadthfirst"],
                            elements=[],
                            stylesheet=STYLESHEET,
                        ),
                    ),
                ],
                className="graph-panel",
            ),
        ],
        className="page",
    )

    @app.callback(
        Output("call-graph", "elements"),
        Output("call-graph", "layout"),
        Output("status", "children"),
        Input("focus", "value"),
        Input("group", "value"),
        Input("ignore", "value"),
        Input("include", "value"),
        Input("limit", "value"),
        Input("limit-depth", "value"),
        Input("toggles", "value"),
        Input("layout-mode", "value"),
    )
    def update_graph(
        focus: Optional[str],
        group: Optional[List[str]],
        ignore: Optional[str],
        include: Optional[str],
        limit: Optional[str],
        limit_depth: Optional[int],
        toggles: Optional[List[str]],
        layout_mode: str,
    ) -> Tuple[List[dict], dict, html.Div]:
        toggles = toggles or []
        options = replace(
            baseline,
            focus=focus or "",
            group=",".join(group or []),
            ignore=ignore or "",
            include=include or "",
            limit=limit or "",
            limit_depth=limit_depth or 1,
            nostd="nostd" in toggles,
            nointer="nointer" in toggles,
        )
        layout_config = dict(LAYOUT_PRESETS.get(layout_mode, LAYOUT_PRESETS["breadthfirst"]))

        try:
            reduced = session.reduce(options)
        except CallscopeError as exc:
            children: List = [html.Div(str(exc), className="status-error")]
            if isinstance(exc, AmbiguousFocusError):
                children.append(html.Ul([html.Li(candidate) for candidate in exc.candidates]))
            return [], layout_config, html.Div(children)

        summary = f"{len(reduced.nodes)} functions, {len(reduced.edges)} calls"
        if reduced.focus:
            summary += f" (focus: {reduced.focus})"
        return graph_elements(reduced), layout_config, html.Div(summary, className="status-ok")

    app.index_string = """
<!DOCTYPE html>
<html>
    <head>
        {%metas%}
        <title>{%title%}</title>
        {%favicon%}
        {%css%}
        <style>
            body {
                margin: 0;
                background: radial-gradient(circle at top left, rgba(30, 64, 175, 0.15), rgba(15, 23, 42, 0.95));
                color: #e2e8f0;
                font-family: 'Inter', sans-serif;
            }
            .page {
                display: grid;
                grid-template-columns: 340px 1fr;
                height: 100vh;
            }
            .sidebar {
                padding: 1.35rem;
                background: rgba(15, 23, 42, 0.92);
                display: flex;
                flex-direction: column;
                gap: 1.1rem;
                overflow-y: auto;
            }
            .graph-panel {
                padding: 1rem 1.7rem 1.7rem 1.5rem;
            }
            .graph-panel > div {
                width: 100%;
                height: 100%;
            }
            .header .title {
                margin: 0;
                font-size: 1.35rem;
                font-weight: 600;
                color: #38bdf8;
            }
            .header .subtitle {
                margin: 0.3rem 0 0;
                color: #94a3b8;
                font-size: 0.9rem;
            }
            .control {
                display: flex;
                flex-direction: column;
                gap: 0.55rem;
            }
            .control label {
                font-size: 0.78rem;
                text-transform: uppercase;
                letter-spacing: 0.08em;
                color: #94a3b8;
            }
            .checklist {
                display: flex;
                flex-direction: column;
                gap: 0.35rem;
                font-size: 0.86rem;
            }
            .status {
                background: rgba(30, 41, 59, 0.7);
                border: 1px solid rgba(148, 163, 184, 0.18);
                border-radius: 14px;
                padding: 0.85rem;
                font-size: 0.86rem;
            }
            .status-error {
                color: #fca5a5;
            }
        </style>
    </head>
    <body>
        {%app_entry%}
        <footer>
            {%config%}
            {%scripts%}
            {%renderer%}
        </footer>
    </body>
</html>
"""
    return app


__all__ = ["create_app", "graph_elements", "register_routes"]
