"""Command line entry point."""

import argparse
import asyncio
import json
import sys

from httpgauge import __version__
from httpgauge.adapters.logging import configure_logging
from httpgauge.app import serve
from httpgauge.config import config_json_schema, load_config, parse_config
from httpgauge.core.errors import ConfigError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpgauge",
        description="Poll HTTP endpoints on schedules and export the values "
        "they contain as Prometheus gauges.",
    )
    parser.add_argument("config", nargs="?", help="path to config.yml")
    parser.add_argument(
        "--print-schema",
        action="store_true",
        help="print the configuration JSON schema and exit",
    )
    parser.add_argument(
        "--scrape-on-startup",
        action="store_true",
        default=None,
        help="scrape every target once at startup (overrides the config)",
    )
    parser.add_argument("--address", help="host:port to bind (overrides the config)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.print_schema:
        print(json.dumps(config_json_schema(), indent=2))
        return 0
    if args.config is None:
        parser.error("the following arguments are required: config")

    try:
        config = load_config(args.config)
        overrides = {}
        if args.scrape_on_startup is not None:
            overrides["scrape_on_startup"] = True
        if args.address is not None:
            overrides["address"] = args.address
        if overrides:
            config = parse_config({**config.model_dump(), **overrides})
        configure_logging(config.log_level)
        asyncio.run(serve(config))
    except ConfigError as e:
        print(f"httpgauge: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        pass
    return 0
