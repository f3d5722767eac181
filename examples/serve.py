#!/usr/bin/env python3
"""Run the tree annotation service locally.

Requires the ``serve`` extra (``pip install -e .[serve]``).

Usage:
    python examples/serve.py [--host HOST] [--port PORT] [--reload]
"""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Run the tree annotation service")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    args = parser.parse_args()

    uvicorn.run("tree_annotation.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
