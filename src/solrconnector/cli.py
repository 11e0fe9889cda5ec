"""CLI entry point — Inspect a Solr server through the configured connector."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="solrconnector",
        description="Solr connector: ping and inspect a Solr server",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"solrconnector {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("ping", help="Ping the core and the server")
    version_parser = subparsers.add_parser("version", help="Show the negotiated Solr version")
    version_parser.add_argument("--auto-detect", action="store_true", help="Ignore the configured override")
    info_parser = subparsers.add_parser("info", help="Show core or server system info")
    info_parser.add_argument("--server", action="store_true", help="Query the server instead of the core")
    info_parser.add_argument("--reset", action="store_true", help="Bypass the metadata cache")
    subparsers.add_parser("stats", help="Show core statistics")
    rest_parser = subparsers.add_parser("rest", help="Send a REST request")
    rest_parser.add_argument("path", help="Handler path, e.g. schema/fields")
    rest_parser.add_argument("--server", action="store_true", help="Send to the server endpoint")
    rest_parser.add_argument("--data", default=None, help="JSON body; sends a POST")

    args = parser.parse_args(argv)

    from solrconnector.cache.manager import CacheManager
    from solrconnector.config.settings import Settings
    from solrconnector.connectors.base.exceptions import SearchApiSolrException
    from solrconnector.connectors.base.registry import create_default_registry
    from solrconnector.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            return 1
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    if args.log_level:
        settings.observability.log_level = args.log_level
    setup_logging(settings.observability)

    cache = CacheManager(settings.cache)
    connector = create_default_registry().create(settings.connector, cache=cache)

    try:
        if args.command == "ping":
            core = connector.ping_core()
            server = connector.ping_server()
            _print({"core": _latency_ms(core), "server": _latency_ms(server)})
            return 0 if core is not False else 1
        if args.command == "version":
            version = connector.get_solr_version(force_auto_detect=args.auto_detect)
            _print(
                {
                    "version": version,
                    "branch": connector.get_solr_branch(version),
                    "lucene_match_version": connector.get_lucene_match_version(version),
                }
            )
        elif args.command == "info":
            if args.server:
                _print(connector.get_server_info(reset=args.reset))
            else:
                _print(connector.get_core_info(reset=args.reset))
        elif args.command == "stats":
            _print(connector.get_stats_summary().model_dump())
        elif args.command == "rest":
            endpoint = "server" if args.server else "core"
            if args.data is None:
                _print(connector.rest_request(endpoint, args.path))
            else:
                _print(connector.rest_request(endpoint, args.path, "POST", args.data))
    except SearchApiSolrException as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        connector.close()
        cache.shutdown()
    return 0


def _latency_ms(latency: float | bool) -> float | None:
    return None if latency is False else round(float(latency) * 1000, 3)


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _get_version() -> str:
    """Get the package version."""
    from solrconnector import __version__

    return __version__


if __name__ == "__main__":
    sys.exit(main())
