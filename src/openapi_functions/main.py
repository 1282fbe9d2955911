"""CLI entry point for the OpenAPI function bridge."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import httpx

from .auth import AuthError
from .client import APIClient
from .config import Settings, get_settings
from .executors import ExecutionError
from .logging import configure_logging
from .openapi import OpenAPILoader, SpecLoadError, load_spec_file
from .tool_registry import FunctionRegistry

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openapi-functions",
        description="Expose OpenAPI operations as LLM function definitions.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    tools = commands.add_parser("tools", help="Print the function definitions as JSON.")
    tools.add_argument("spec", help="OpenAPI document (JSON or YAML), as a path or http(s) URL.")

    call = commands.add_parser("call", help="Execute one function against the API.")
    call.add_argument("spec", help="OpenAPI document (JSON or YAML), as a path or http(s) URL.")
    call.add_argument("name", help="Generated function name, e.g. get_pets_id.")
    call.add_argument("--args", default="{}", help="Function arguments as a JSON object.")
    call.add_argument("--base-url", default=None, help="Overrides the configured API base URL.")
    return parser


async def _load_registry(source: str, settings: Settings) -> FunctionRegistry:
    if source.startswith(("http://", "https://")):
        loader = OpenAPILoader(
            cache_seconds=settings.spec_cache_seconds,
            timeout_seconds=settings.api_timeout_seconds,
        )
        spec = await loader.load(source)
        if spec is None:
            raise SpecLoadError(f"could not fetch OpenAPI document: {source}")
    else:
        spec = load_spec_file(Path(source))
    return FunctionRegistry.from_spec(spec)


async def _run(args: argparse.Namespace) -> Any:
    settings = get_settings()
    registry = await _load_registry(args.spec, settings)
    if args.command == "tools":
        return registry.tools()

    if args.base_url:
        settings = settings.model_copy(update={"api_base_url": args.base_url})
    async with APIClient.from_settings(settings) as client:
        return await registry.call(client, args.name, args.args)


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)

    try:
        result = asyncio.run(_run(args))
    except (OSError, SpecLoadError, ExecutionError, AuthError, httpx.HTTPError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
