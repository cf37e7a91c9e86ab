"""
CLI for remotefetch. Run: python -m remotefetch.cli fetch <url>
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from urllib.parse import unquote

from .errors import (
    ConfigError,
    FetchError,
    FetchTimeout,
    MalformedInputError,
    SecurityError,
    SizeLimitExceeded,
)
from .service import RemoteResourceService, build_service


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        description="remotefetch — whitelisted, bounded download of remote resources"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fetch_parser = subparsers.add_parser("fetch", help="Fetch URL and write its bytes")
    fetch_parser.add_argument("url", help="URL to fetch")
    fetch_parser.add_argument(
        "-o",
        "--output",
        help="Write to this file instead of stdout",
    )

    serve_parser = subparsers.add_parser(
        "serve", help="Start HTTP server with /remote.axd endpoint"
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8877,
        help="Port to listen on (default: 8877)",
    )

    args = parser.parse_args(argv)

    try:
        service = build_service()
    except ConfigError as e:
        print(f"ConfigError: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "fetch":
        _run_fetch(service, args.url, args.output)
    elif args.command == "serve":
        _serve(service, args.port)


def _run_fetch(service: RemoteResourceService, url: str, output: str | None) -> None:
    try:
        content = asyncio.run(service.get(url))
    except SecurityError as e:
        print(f"SecurityError: {e}", file=sys.stderr)
        sys.exit(2)
    except MalformedInputError as e:
        print(f"MalformedInputError: {e}", file=sys.stderr)
        sys.exit(3)
    except SizeLimitExceeded as e:
        print(f"SizeLimitExceeded: {e}", file=sys.stderr)
        sys.exit(4)
    except FetchTimeout as e:
        print(f"FetchTimeout: {e}", file=sys.stderr)
        sys.exit(5)
    except FetchError as e:
        print(f"FetchError: {e}", file=sys.stderr)
        sys.exit(1)

    if output:
        with open(output, "wb") as f:
            f.write(content)
    else:
        sys.stdout.buffer.write(content)
        sys.stdout.buffer.flush()


def create_app(service: RemoteResourceService):
    """Flask app serving GET /remote.axd?url=... with the raw fetched bytes."""
    from flask import Flask, request

    app = Flask(__name__)

    @app.route(f"/{service.key}")
    def handle_fetch():
        url_param = request.args.get("url")
        if not url_param:
            return {"error": "missing url"}, 400
        url = unquote(url_param)
        try:
            content = asyncio.run(service.get(url))
            return content, 200, {"Content-Type": "application/octet-stream"}
        except SecurityError:
            return {"error": "host not on whitelist"}, 403
        except MalformedInputError as e:
            return {"error": str(e)}, 400
        except SizeLimitExceeded:
            return {"error": "response too large"}, 413
        except FetchTimeout:
            return {"error": "upstream timed out"}, 504
        except FetchError as e:
            return {"error": str(e)}, 502

    return app


def _serve(service: RemoteResourceService, port: int) -> None:
    app = create_app(service)
    print(
        f"[remotefetch] server at http://127.0.0.1:{port}/{service.key}?url=...",
        file=sys.stderr,
    )
    app.run(host="127.0.0.1", port=port, debug=False)


if __name__ == "__main__":
    main()
