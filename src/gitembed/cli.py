# src/gitembed/cli.py

import argparse
import importlib.metadata
import json
import sys
from pathlib import Path
from typing import List, Optional

from gitembed import log_utils
from gitembed.config import build_cache, load_config
from gitembed.exceptions import ConfigurationError
from gitembed.platforms import Platform
from gitembed.resolver import (
    FetchRequest,
    RepositoryResolver,
    handle_clear_cache_request,
    handle_fetch_request,
)


def _add_repository_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "platform",
        choices=[platform.value for platform in Platform],
        help="Git hosting platform",
    )
    parser.add_argument("owner", help="Repository owner or namespace")
    parser.add_argument("repo", help="Repository name")
    parser.add_argument(
        "--domain",
        dest="custom_domain",
        default="",
        help="Domain of the self-hosted instance (required for all platforms but github)",
    )
    parser.add_argument(
        "--site-name",
        dest="custom_site_name",
        default="",
        help="Display name to use instead of the probed site title",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitembed",
        description="gitembed - repository card metadata for GitHub, GitLab, Gitea and Forgejo",
    )
    parser.add_argument("--config", help="Path to a gitembed.yaml configuration file")
    parser.add_argument(
        "--log-level", help="Log level (DEBUG shows upstream request details)"
    )
    subparsers = parser.add_subparsers(dest="command")

    fetch_parser = subparsers.add_parser(
        "fetch", help="Resolve repository metadata and print it as JSON"
    )
    _add_repository_arguments(fetch_parser)
    fetch_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Clear the cached entry before fetching",
    )

    cache_parser = subparsers.add_parser(
        "cache",
        help="Manage cached data",
        description="Clear cached repository, site name and avatar data.",
    )
    cache_subparsers = cache_parser.add_subparsers(dest="cache_command", required=True)
    clear_parser = cache_subparsers.add_parser(
        "clear", help="Clear one repository's cache entry and all avatar entries"
    )
    _add_repository_arguments(clear_parser)
    cache_subparsers.add_parser("clear-all", help="Remove every gitembed cache entry")

    subparsers.add_parser("version", help="Display gitembed version")
    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _request_from_args(args: argparse.Namespace) -> FetchRequest:
    return FetchRequest(
        platform=args.platform,
        owner=args.owner,
        repo=args.repo,
        custom_domain=args.custom_domain,
        custom_site_name=args.custom_site_name,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the gitembed command-line interface.

    Parses arguments, loads configuration and dispatches the fetch, cache and
    version subcommands.

    Returns:
        int: Process exit code (0 on success, 1 on failure, 2 on usage errors).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    if args.command == "version":
        try:
            version = importlib.metadata.version("gitembed")
        except importlib.metadata.PackageNotFoundError:
            version = "unknown"
        print(f"gitembed {version}")
        return 0

    try:
        config = load_config(args.config)
    except ConfigurationError as error:
        log_utils.logger.error(f"Failed to load configuration: {error}")
        return 1

    level = args.log_level or config.get("LOG_LEVEL")
    if level:
        log_utils.set_log_level(level)
    if config.get("LOG_DIR"):
        log_utils.add_file_logging(Path(config["LOG_DIR"]), level or "INFO")

    resolver = RepositoryResolver(
        build_cache(config),
        api_timeout=config["API_TIMEOUT"],
        probe_timeout=config["PROBE_TIMEOUT"],
        avatar_timeout=config["AVATAR_TIMEOUT"],
    )

    if args.command == "fetch":
        request = _request_from_args(args)
        if args.refresh:
            handle_clear_cache_request(resolver, request)
        response = handle_fetch_request(resolver, request)
        _print_json(response.to_dict())
        return 0 if response.success else 1

    if args.command == "cache":
        if args.cache_command == "clear-all":
            removed = resolver.clear_all_cache()
            _print_json({"success": True, "data": f"Removed {removed} cache entries"})
            return 0
        response = handle_clear_cache_request(resolver, _request_from_args(args))
        _print_json(response.to_dict())
        return 0 if response.success else 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
