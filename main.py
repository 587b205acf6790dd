#!/usr/bin/env python3
"""
extio - Sample Program

Sends one HTTP request through the reference HTTP backend and prints the
result. Any other operation on that backend reports "not implemented".
"""

import argparse
import asyncio
import sys

from extio import ExtioError, HttpRequest, HttpxBackend, IoCapability, OPERATIONS


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Fetch a URL through the extio HTTP backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --url https://example.org --method HEAD
  python main.py --list-capabilities
        """
    )
    parser.add_argument("--url", default="https://www.python.org", help="URL to request")
    parser.add_argument("--method", default="GET", help="HTTP method")
    parser.add_argument("--timeout", type=float, default=30.0, help="Timeout in seconds")
    parser.add_argument(
        "--list-capabilities",
        action="store_true",
        help="Show which operations the HTTP backend provides and exit"
    )
    return parser.parse_args(argv)


def print_capabilities():
    """Print the operation table for HttpxBackend"""
    supported = HttpxBackend.supported_capabilities()
    for capability in IoCapability:
        spec = OPERATIONS[capability]
        mark = "yes" if capability in supported else "-"
        kind = "async" if spec.suspends else "sync"
        print(f"  {capability.value:<16} {spec.group.value:<16} {kind:<6} {mark}")


async def fetch(url: str, method: str, timeout: float) -> int:
    async with HttpxBackend(timeout=timeout) as backend:
        try:
            response = await backend.http_request(HttpRequest(method=method, uri=url))
        except ExtioError as e:
            print(f"[ERROR] {e}", file=sys.stderr)
            return 1

    print(f"Status: {response.status}")
    print(response.text())
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)

    if args.list_capabilities:
        print_capabilities()
        return 0

    return asyncio.run(fetch(args.url, args.method, args.timeout))


if __name__ == "__main__":
    sys.exit(main())
