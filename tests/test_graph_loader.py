"""Tests for analysis artefact loading."""

from __future__ import annotations

from pathlib import Path

import networkx as nx
import pytest

from callscope.analysis.graph_loader import build_analysis, load_analysis
from callscope.errors import AnalysisError, NoEntryPointError, PackageErrorsError

from conftest import write_artifact


def test_load_analysis(artifact: Path) -> None:
    analysis = load_analysis(artifact)

    assert analysis.program == "sample"
    assert analysis.entry_points == ("app/main.main",)
    assert analysis.graph.number_of_nodes() == 11

    next_fn = analysis.function("app/util.Parser.Next")
    assert next_fn.name == "Next"
    assert next_fn.recv == "*Parser"
    assert analysis.function("fmt.Println").std is True
    assert analysis.function("app/model.Save$bound").is_synthetic


def test_program_defaults_to_file_stem(tmp_path: Path, payload: dict) -> None:
    del payload["program"]
    analysis = load_analysis(write_artifact(tmp_path, payload, name="demo"))

    assert analysis.program == "demo"


def test_parallel_call_sites_are_kept(analysis) -> None:
    assert analysis.graph.number_of_edges("app/main.main", "app/main.helper") == 2


def test_graph_is_frozen(analysis) -> None:
    assert nx.is_frozen(analysis.graph)
    with pytest.raises(nx.NetworkXError):
        analysis.graph.add_node("rogue")


def test_packages_named(analysis) -> None:
    paths = sorted(pkg.path for pkg in analysis.packages_named("util"))

    assert paths == ["app/util", "lib/util"]
    assert analysis.imported_package("fmt").std is True
    assert analysis.imported_package("missing/pkg") is None


def test_package_errors_abort_loading(payload: dict) -> None:
    payload["packages"][1]["errors"] = ["parse.go:3: undefined: x"]

    with pytest.raises(PackageErrorsError) as excinfo:
        build_analysis(payload)

    assert str(excinfo.value) == "packages contain errors"
    assert excinfo.value.errors == ("app/util: parse.go:3: undefined: x",)


def test_missing_main_package(payload: dict) -> None:
    payload["packages"][0]["name"] = "cmd"

    with pytest.raises(NoEntryPointError, match="no main packages"):
        build_analysis(payload)


def test_method_named_main_is_not_an_entry_point() -> None:
    payload = {
        "packages": [{"path": "app/main", "name": "main"}],
        "functions": [{"id": "app/main.T.main", "name": "main", "package": "app/main", "recv": "T"}],
    }

    with pytest.raises(NoEntryPointError):
        build_analysis(payload)


def test_explicit_entry_points(payload: dict) -> None:
    payload["entry_points"] = ["app/util.unused"]
    analysis = build_analysis(payload)

    assert analysis.entry_points == ("app/util.unused",)

    payload["entry_points"] = ["nowhere.main"]
    with pytest.raises(AnalysisError, match="Unknown entry points"):
        build_analysis(payload)


def test_placeholder_nodes_for_undeclared_callees(payload: dict) -> None:
    payload["edges"].append({"caller": "app/main.main", "callee": "ext/log.Printf", "site": "main.go:20"})
    analysis = build_analysis(payload)

    placeholder = analysis.function("ext/log.Printf")
    assert placeholder.package == "ext/log"
    assert placeholder.name == "Printf"
    assert analysis.imported_package("ext/log").name == "log"


def test_malformed_artifact(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(AnalysisError, match="Malformed analysis artefact"):
        load_analysis(broken)

    listed = tmp_path / "listed.json"
    listed.write_text("[]", encoding="utf-8")
    with pytest.raises(AnalysisError, match="expected a JSON object"):
        load_analysis(listed)
