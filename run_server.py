#!/usr/bin/env python
"""
Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py --port 8080
"""

import argparse
import os

import uvicorn


APP_PATH = "supermall.main:app"


def run_dev_server(port: int) -> None:
    """Run development server with auto-reload."""
    uvicorn.run(
        APP_PATH,
        host="127.0.0.1",
        port=port,
        reload=True,
        reload_dirs=["supermall"],
        log_level="debug",
    )


def run_prod_server(port: int) -> None:
    """
    Run with a single worker.

    Session and local store state live in the process, so the catalog is
    served by one worker.
    """
    uvicorn.run(
        APP_PATH,
        host="0.0.0.0",
        port=port,
        workers=1,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
        server_header=False,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="SuperMall Catalog API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", 8000)),
        help="Port to run on (default: 8000)",
    )
    args = parser.parse_args()

    if args.dev:
        run_dev_server(args.port)
    else:
        run_prod_server(args.port)


if __name__ == "__main__":
    main()
