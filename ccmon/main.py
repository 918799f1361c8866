#!/usr/bin/env python3
"""
ccmon server entry point

Loads configuration, sets up logging and serves the JSON API with uvicorn.
"""

import argparse
import logging

import uvicorn

from .core.config import load_config
from .core.server import create_app


def main():
    """Main entry point for the ccmon server."""
    parser = argparse.ArgumentParser(description="ccmon - Claude Code usage metrics server")
    parser.add_argument("-c", "--config", help="Path to YAML config", default=None)
    parser.add_argument("--no-refresh", action="store_true", help="Disable periodic dashboard refresh")
    args = parser.parse_args()

    config = load_config(args.config)

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(config, auto_refresh=not args.no_refresh)

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        reload=False,
        access_log=False,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
