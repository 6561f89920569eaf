"""Tests for the DOT/SVG endpoints and cytoscape element conversion."""

from __future__ import annotations

import pytest

pytest.importorskip("dash")
pytest.importorskip("dash_cytoscape")

import flask

from callscope.config import RenderOptions
from callscope.pipelines.render_session import RenderSession
from callscope.ui import app as ui_app


@pytest.fixture
def client(analysis):
    server = flask.Flask(__name__)
    ui_app.register_routes(server, RenderSession(analysis, RenderOptions(focus="app/util", nostd=True)))
    return server.test_client()


def test_dot_uses_baseline(client) -> None:
    response = client.get("/callgraph.dot")

    assert response.status_code == 200
    assert response.mimetype == "text/vnd.graphviz"
    body = response.get_data(as_text=True)
    assert "focus: app/util" in body
    assert "fmt.Println" not in body


def test_overrides_apply_to_one_request(client) -> None:
    response = client.get("/callgraph.dot", query_string={"f": "all", "std": "1"})

    body = response.get_data(as_text=True)
    assert "focus:" not in body
    assert "fmt.Println" in body

    assert "focus: app/util" in client.get("/callgraph.dot").get_data(as_text=True)


def test_ambiguous_focus_is_a_bad_request(client) -> None:
    response = client.get("/callgraph.dot", query_string={"f": "util"})

    assert response.status_code == 400
    body = response.get_data(as_text=True)
    assert " - app/util" in body
    assert " - lib/util" in body


def test_svg_without_graphviz(client, monkeypatch: pytest.MonkeyPatch) -> None:
    def missing(source, fmt="svg", **kwargs):
        raise FileNotFoundError("Graphviz launcher not found: dot")

    monkeypatch.setattr(ui_app, "run_dot", missing)
    response = client.get("/callgraph.svg")

    assert response.status_code == 501


def test_svg_render(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ui_app, "run_dot", lambda source, fmt="svg", **kwargs: b"<svg/>")
    response = client.get("/callgraph.svg", query_string={"group": "pkg,type"})

    assert response.status_code == 200
    assert response.mimetype == "image/svg+xml"
    assert response.data == b"<svg/>"


def test_graph_elements_nest_clusters(session) -> None:
    elements = ui_app.graph_elements(session.reduce(RenderOptions(group="pkg,type")))
    by_id = {element["data"]["id"]: element["data"] for element in elements}

    type_cluster = "cluster:pkg:app/util/cluster:type:app/util.Parser"
    assert by_id[type_cluster]["parent"] == "cluster:pkg:app/util"
    assert by_id["app/util.Parser.Next"]["parent"] == type_cluster
    assert by_id["app/util.Parse"]["parent"] == "cluster:pkg:app/util"

    edges = [element["data"] for element in elements if "source" in element["data"]]
    dynamic = [edge for edge in edges if edge["dynamic"]]
    assert [(edge["source"], edge["target"]) for edge in dynamic] == [("app/util.Parse", "app/util.Parser.Next")]


def test_create_app(session) -> None:
    dash_app = ui_app.create_app(session)

    assert dash_app.title == "Call Graph Explorer"
    rules = {rule.rule for rule in dash_app.server.url_map.iter_rules()}
    assert {"/callgraph.dot", "/callgraph.svg"} <= rules
