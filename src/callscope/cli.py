"""Command line entry points for the project."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from callscope import __version__
from callscope.analysis.graph_loader import AnalysisResult, load_analysis
from callscope.analysis.visualization import plot_reduced_graph
from callscope.config import ENV_PREFIX, RenderOptions
from callscope.errors import AmbiguousFocusError, AnalysisError, CallscopeError, PackageErrorsError
from callscope.io.graphviz import DEFAULT_DOT, run_dot
from callscope.pipelines.render_session import RenderSession

app = typer.Typer(help="Filtered, grouped and focusable views of whole-program call graphs.")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env(name: str) -> str:
    return f"{ENV_PREFIX}{name.upper()}"


# Shared option declarations; defaults come from flags or CALLSCOPE_* variables.
InputOption = typer.Option(..., "--input", "-i", help="Analysis artefact (JSON) emitted by the call graph exporter.")
FocusOption = typer.Option("", "--focus", help="Focus package: import path or unique package name.", envvar=_env("focus"))
GroupOption = typer.Option("pkg", "--group", help="Grouping keys, comma separated: pkg, type.", envvar=_env("group"))
IgnoreOption = typer.Option("", "--ignore", help="Package path prefixes to ignore, comma separated.", envvar=_env("ignore"))
IncludeOption = typer.Option("", "--include", help="Package path prefixes to include, comma separated.", envvar=_env("include"))
LimitOption = typer.Option("", "--limit", help="Package path prefixes whose expansion is depth limited.", envvar=_env("limit"))
LimitDepthOption = typer.Option(1, "--limit-depth", help="Call depth rendered inside limited packages.", envvar=_env("limit_depth"))
NostdOption = typer.Option(False, "--nostd", help="Omit standard library functions.", envvar=_env("nostd"))
NointerOption = typer.Option(False, "--nointer", help="Elide synthetic wrapper functions.", envvar=_env("nointer"))


def _load(input_path: Path) -> AnalysisResult:
    candidate = input_path.expanduser().resolve()
    if not candidate.exists():
        raise typer.BadParameter(f"Analysis artefact not found: {candidate}")
    try:
        return load_analysis(candidate)
    except PackageErrorsError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        for message in exc.errors[:10]:
            typer.echo(f"  - {message}", err=True)
        raise typer.Exit(code=1) from exc
    except AnalysisError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _failure(exc: CallscopeError) -> typer.Exit:
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    if isinstance(exc, AmbiguousFocusError):
        for candidate in exc.candidates:
            typer.echo(f" - {candidate}", err=True)
    return typer.Exit(code=1)


@app.callback()
def main(
    display_version: bool = typer.Option(False, "--version", "-V", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress to stderr."),
) -> None:
    """Print the package version when requested and configure logging."""

    if display_version:
        typer.echo(__version__)
        raise typer.Exit()
    if verbose:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)


@app.command("render")
def render(
    input: Path = InputOption,
    focus: str = FocusOption,
    group: str = GroupOption,
    ignore: str = IgnoreOption,
    include: str = IncludeOption,
    limit: str = LimitOption,
    limit_depth: int = LimitDepthOption,
    nostd: bool = NostdOption,
    nointer: bool = NointerOption,
    format: str = typer.Option("dot", "--format", "-f", help="Output format: dot, or any Graphviz -T format (svg, png, ...)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Destination file (defaults to stdout)."),
    dot_binary: str = typer.Option(DEFAULT_DOT, help="Graphviz launcher used for non-dot formats."),
) -> None:
    """Render the reduced call graph as DOT (or an image through Graphviz)."""

    session = RenderSession(
        _load(input),
        RenderOptions(
            focus=focus,
            group=group,
            ignore=ignore,
            include=include,
            limit=limit,
            limit_depth=limit_depth,
            nostd=nostd,
            nointer=nointer,
        ),
    )
    try:
        payload = session.render()
    except CallscopeError as exc:
        raise _failure(exc) from exc

    fmt = format.lower()
    if fmt != "dot":
        try:
            payload = run_dot(payload, fmt, dot_binary=dot_binary)
        except (FileNotFoundError, RuntimeError) as exc:
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc

    if output is None:
        typer.echo(payload, nl=False)
        return

    destination = output.expanduser().resolve()
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_bytes(payload)
    typer.echo(f"Call graph written to {destination}", err=True)


@app.command("packages")
def packages(
    input: Path = InputOption,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Only list packages with this name."),
    nostd: bool = typer.Option(False, "--nostd", help="Hide standard library packages."),
) -> None:
    """List the analysed packages, e.g. to pick an unambiguous focus path."""

    analysis = _load(input)
    counts: dict[str, int] = {}
    for function in analysis.functions():
        counts[function.package] = counts.get(function.package, 0) + 1

    listed = 0
    for path, package in sorted(analysis.packages().items()):
        if name and package.name != name:
            continue
        if nostd and package.std:
            continue
        marker = " [std]" if package.std else ""
        typer.echo(f"{path:<50} {package.name:<20} {counts.get(path, 0):>6} functions{marker}")
        listed += 1

    if not listed:
        typer.secho("No packages matched.", fg=typer.colors.YELLOW)


@app.command("plot")
def plot(
    input: Path = InputOption,
    output: Path = typer.Option(..., "--output", "-o", help="Destination PNG."),
    focus: str = FocusOption,
    group: str = GroupOption,
    ignore: str = IgnoreOption,
    include: str = IncludeOption,
    limit: str = LimitOption,
    limit_depth: int = LimitDepthOption,
    nostd: bool = NostdOption,
    nointer: bool = NointerOption,
    layout: str = typer.Option("spring", help="Layout algorithm: spring or kamada-kawai."),
    show_labels: bool = typer.Option(True, help="Render node labels (best for <=150 nodes)."),
) -> None:
    """Draw a static PNG preview of the reduced call graph."""

    session = RenderSession(
        _load(input),
        RenderOptions(
            focus=focus,
            group=group,
            ignore=ignore,
            include=include,
            limit=limit,
            limit_depth=limit_depth,
            nostd=nostd,
            nointer=nointer,
        ),
    )
    try:
        reduced = session.reduce()
    except CallscopeError as exc:
        raise _failure(exc) from exc

    png_path = plot_reduced_graph(reduced, output.expanduser().resolve(), layout=layout, show_labels=show_labels)
    typer.echo(f"Nodes: {len(reduced.nodes)}  Edges: {len(reduced.edges)}")
    typer.echo(f"Visualization saved to {png_path}")


@app.command("serve")
def serve(
    input: Path = InputOption,
    focus: str = FocusOption,
    group: str = GroupOption,
    ignore: str = IgnoreOption,
    include: str = IncludeOption,
    limit: str = LimitOption,
    limit_depth: int = LimitDepthOption,
    nostd: bool = NostdOption,
    nointer: bool = NointerOption,
    host: str = typer.Option("127.0.0.1", help="Host interface for the Dash server."),
    port: int = typer.Option(7878, help="Port for the Dash server."),
    debug: bool = typer.Option(False, help="Enable Dash debug mode."),
) -> None:
    """Launch the interactive explorer and the /callgraph.dot override endpoint."""

    from callscope.ui import create_app

    session = RenderSession(
        _load(input),
        RenderOptions(
            focus=focus,
            group=group,
            ignore=ignore,
            include=include,
            limit=limit,
            limit_depth=limit_depth,
            nostd=nostd,
            nointer=nointer,
        ),
    )
    app_instance = create_app(session)
    typer.echo(f"Serving call graph explorer on http://{host}:{port}/ (DOT at /callgraph.dot)")
    app_instance.run(host=host, port=port, debug=debug)


def run() -> None:
    """Entry point used by ``python -m callscope.cli``."""

    app()


if __name__ == "__main__":
    run()
