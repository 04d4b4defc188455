"""Logging configuration shared by the CLI and the MCP server.

All diagnostics go to stderr: stdout carries command output, and in MCP mode
it carries the JSON-RPC stream.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

err_console = Console(stderr=True)


def setup_logging(level: str = "WARNING", verbose: bool = False) -> None:
    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=verbose,
        markup=False,
        rich_tracebacks=verbose,
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    root.setLevel(logging.DEBUG if verbose else numeric)

    # PyGithub and urllib3 are chatty at DEBUG
    for name in ("github", "urllib3"):
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
