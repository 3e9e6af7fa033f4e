"""
Command line access to an AgentRPC cluster.

Usage:
    python -m agentrpc tools
    python -m agentrpc call hello --input '{"name": "World"}'

The API secret is read from --api-secret or AGENTRPC_API_SECRET.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import httpx

from .client import AgentRPC
from .errors import AgentRPCError
from .polling import create_and_poll_job

logger = logging.getLogger("agentrpc.cli")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentrpc",
        description="Inspect and invoke tools on an AgentRPC cluster",
    )
    parser.add_argument("--api-secret", help="Cluster API secret (default: $AGENTRPC_API_SECRET)")
    parser.add_argument("--endpoint", help="Coordinator URL (default: $AGENTRPC_ENDPOINT)")
    parser.add_argument("--mcp-uuid", help="MCP server id, required with a custom endpoint")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("tools", help="List tools registered on the cluster")

    call = sub.add_parser("call", help="Run a tool and wait for its result")
    call.add_argument("name", help="Tool name")
    call.add_argument("--input", "-i", default="{}", help="JSON object passed as tool input")

    return parser


async def _run(args: argparse.Namespace) -> Any:
    logger.debug(f"Running command: {args.command}")
    async with AgentRPC(
        api_secret=args.api_secret,
        endpoint=args.endpoint,
        mcp_uuid=args.mcp_uuid,
    ) as rpc:
        if args.command == "tools":
            return await rpc.openai.get_tools()

        outcome = await create_and_poll_job(
            rpc.rpc_client,
            rpc.cluster_id,
            args.name,
            json.loads(args.input),
        )
        return {"status": outcome.status, "resultType": outcome.result_type, "result": outcome.result}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        output = asyncio.run(_run(args))
    except json.JSONDecodeError as e:
        print(f"Invalid --input JSON: {e}", file=sys.stderr)
        return 1
    except AgentRPCError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
