"""Adapter for the Graphviz ``dot`` launcher."""

from __future__ import annotations

import logging
import shutil
import subprocess

LOGGER = logging.getLogger(__name__)

DEFAULT_DOT = "dot"


def run_dot(source: bytes, fmt: str = "svg", *, dot_binary: str = DEFAULT_DOT) -> bytes:
    """
    Convert a DOT document into ``fmt`` (svg, png, pdf, ...) with Graphviz.

    The DOT text is piped to the launcher on stdin and the rendered bytes are read
    back from stdout.
    """

    executable = shutil.which(dot_binary)
    if executable is None:
        raise FileNotFoundError(f"Graphviz launcher not found: {dot_binary}")

    cmd = [executable, f"-T{fmt}"]
    LOGGER.debug("Running %s", " ".join(cmd))
    result = subprocess.run(cmd, input=source, check=False, capture_output=True)
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise RuntimeError(f"{dot_binary} exited with status {result.returncode}: {stderr}")
    return result.stdout


__all__ = ["DEFAULT_DOT", "run_dot"]
