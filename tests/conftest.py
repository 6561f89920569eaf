"""Shared fixtures: a small whole-program analysis with std, synthetic and nested packages."""

from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from callscope.analysis.graph_loader import AnalysisResult, build_analysis
from callscope.pipelines.render_session import RenderSession

SAMPLE_PAYLOAD = {
    "program": "sample",
    "packages": [
        {"path": "app/main", "name": "main"},
        {"path": "app/util", "name": "util"},
        {"path": "app/model", "name": "model"},
        {"path": "lib/util", "name": "util"},
        {"path": "fmt", "name": "fmt", "std": True},
    ],
    "functions": [
        {"id": "app/main.main", "name": "main", "package": "app/main"},
        {"id": "app/main.helper", "name": "helper", "package": "app/main"},
        {"id": "app/util.Parse", "name": "Parse", "package": "app/util"},
        {"id": "app/util.Parser.Next", "name": "Next", "package": "app/util", "recv": "*Parser"},
        {"id": "app/util.unused", "name": "unused", "package": "app/util"},
        {"id": "app/model.Item.Save", "name": "Save", "package": "app/model", "recv": "Item"},
        {"id": "app/model.Save$bound", "name": "Save$bound", "package": "app/model", "synthetic": "bound method wrapper"},
        {"id": "lib/util.Join", "name": "Join", "package": "lib/util"},
        {"id": "lib/util.split", "name": "split", "package": "lib/util"},
        {"id": "lib/util.trim", "name": "trim", "package": "lib/util"},
        {"id": "fmt.Println", "name": "Println", "package": "fmt"},
    ],
    "edges": [
        {"caller": "app/main.main", "callee": "app/main.helper", "site": "main.go:10"},
        {"caller": "app/main.main", "callee": "app/main.helper", "site": "main.go:12"},
        {"caller": "app/main.main", "callee": "app/util.Parse", "site": "main.go:11"},
        {"caller": "app/main.main", "callee": "app/model.Save$bound", "site": "main.go:14"},
        {"caller": "app/main.helper", "callee": "fmt.Println", "site": "helper.go:3"},
        {"caller": "app/util.Parse", "callee": "app/util.Parser.Next", "site": "parse.go:7", "dynamic": True},
        {"caller": "app/util.Parse", "callee": "lib/util.Join", "site": "parse.go:9"},
        {"caller": "app/util.unused", "callee": "lib/util.Join", "site": "unused.go:2"},
        {"caller": "app/model.Save$bound", "callee": "app/model.Item.Save", "site": ""},
        {"caller": "lib/util.Join", "callee": "lib/util.split", "site": "join.go:4"},
        {"caller": "lib/util.split", "callee": "lib/util.trim", "site": "split.go:8"},
        {"caller": "lib/util.Join", "callee": "fmt.Println", "site": "join.go:6"},
    ],
}


def sample_payload() -> dict:
    return copy.deepcopy(SAMPLE_PAYLOAD)


def write_artifact(tmp_path: Path, payload: dict, name: str = "analysis") -> Path:
    target = tmp_path / f"{name}.json"
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle)
    return target


@pytest.fixture
def payload() -> dict:
    return sample_payload()


@pytest.fixture
def artifact(tmp_path: Path, payload: dict) -> Path:
    return write_artifact(tmp_path, payload)


@pytest.fixture
def analysis(payload: dict) -> AnalysisResult:
    return build_analysis(payload)


@pytest.fixture
def session(analysis: AnalysisResult) -> RenderSession:
    return RenderSession(analysis)
