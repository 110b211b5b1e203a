from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn
import yaml

from autostream.infrastructure.config import AppConfig, load_config
from autostream.infrastructure.logging.setup import configure_logging
from autostream.interfaces.app import create_app

log = structlog.get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 7000


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="autostream",
        description="Run the AutoStream Stremio addon.",
    )

    # Server options
    parser.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    parser.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )

    # Config files
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML (or JSON) config file (default: $AUTOSTREAM_CONFIG).",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )

    # Upstreams and selection
    parser.add_argument(
        "--source",
        dest="sources",
        action="append",
        default=None,
        metavar="URL",
        help="Primary upstream addon URL; repeat for several. Replaces config.",
    )
    parser.add_argument(
        "--fallback-source",
        dest="fallback_sources",
        action="append",
        default=None,
        metavar="URL",
        help="Fallback upstream addon URL; repeat for several. Replaces config.",
    )
    parser.add_argument(
        "--prefer-rule",
        default=None,
        choices=["ratio_and_delta", "ratio_or_delta"],
        help="How seed ratio and delta combine when choosing a lower quality.",
    )
    parser.add_argument(
        "--environment",
        default=None,
        choices=["dev", "test", "prod"],
        help="Deployment environment (prod switches logs to JSON).",
    )

    # Logging
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print the merged configuration as YAML and exit.",
    )

    return parser.parse_args(list(argv) if argv is not None else None)


def build_cli_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat config overrides for every flag that was given."""
    names = (
        "sources",
        "fallback_sources",
        "prefer_rule",
        "environment",
        "log_level",
        "log_format",
    )
    return {
        name: getattr(args, name)
        for name in names
        if getattr(args, name) is not None
    }


def resolve_bind(args: argparse.Namespace) -> tuple[str, int]:
    """CLI flags win over HOST/PORT env, which win over the defaults."""
    host = args.host or os.getenv("HOST") or DEFAULT_HOST
    port = int(args.port or os.getenv("PORT") or DEFAULT_PORT)
    return host, port


def render_config(config: AppConfig) -> str:
    return yaml.safe_dump(
        config.to_sectioned_dict(), sort_keys=False, allow_unicode=True
    )


def start(argv: Iterable[str] | None = None) -> None:
    """Process entrypoint: load config once, then serve the app with it."""
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config = load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=build_cli_overrides(args),
    )

    if args.print_config:
        sys.stdout.write(render_config(config))
        return

    host, port = resolve_bind(args)
    log_config = configure_logging(config)
    log.info(
        "autostream_starting",
        host=host,
        port=port,
        environment=config.environment,
        source_count=len(config.sources),
        fallback_count=len(config.fallback_sources),
    )

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )


if __name__ == "__main__":
    raise SystemExit(start())
