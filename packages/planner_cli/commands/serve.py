"""HTTP server command."""

from __future__ import annotations

from argparse import _SubParsersAction, Namespace

from ..config import RuntimeConfig

__all__ = ["register", "run"]


def register(subparsers: _SubParsersAction) -> None:
    parser = subparsers.add_parser("serve", help="Run the planner HTTP API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.set_defaults(handler=run)


def run(args: Namespace, config: RuntimeConfig) -> None:
    import uvicorn

    from packages.planner.api import create_app

    app = create_app(config.settings)
    uvicorn.run(
        app,
        host=getattr(args, "host", "127.0.0.1"),
        port=int(getattr(args, "port", 8000)),
        log_level=config.log_level.lower(),
    )
