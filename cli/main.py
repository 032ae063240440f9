"""Webpage Analyzer CLI — terminal front-end for the analysis dashboard.

Usage:
    python cli/main.py --help

Command groups:
    urls        → submit, list, watch, inspect, re-run and delete analyses
    serve-mock  → run the in-memory contract server for local development
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from dashboard.xxx import
# ...` works when the CLI is invoked as `python cli/main.py` from any working
# directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from dashboard.config import settings
from dashboard.logging_utils import configure_logging

from cli.commands.urls import urls_app

app = typer.Typer(
    name="analyzer",
    help="Webpage Analyzer dashboard CLI.",
    no_args_is_help=True,
)
app.add_typer(urls_app, name="urls")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="DEBUG | INFO | WARNING | ERROR (default from LOG_LEVEL)."
    ),
) -> None:
    """Talk to the analysis service configured by ANALYZER_API_URL."""
    configure_logging(log_level or settings.log_level)


@app.command("serve-mock")
def serve_mock(
    host: Optional[str] = typer.Option(None, help="Bind address (default MOCK_HOST)."),
    port: Optional[int] = typer.Option(None, help="Port (default MOCK_PORT)."),
    advance_interval: Optional[float] = typer.Option(
        None, "--advance-interval", help="Seconds between fake progress steps; 0 disables."
    ),
) -> None:
    """Run the in-memory contract server."""
    import uvicorn

    from mockserver.app import create_app

    host = host or settings.mock_host
    port = port or settings.mock_port
    typer.echo(f"[serve-mock] Listening on http://{host}:{port}/api/urls")
    uvicorn.run(create_app(advance_interval=advance_interval), host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
