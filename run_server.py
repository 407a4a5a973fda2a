#!/usr/bin/env python3
"""MCP server entry point (stdio transport)."""

import sys

from dotenv import load_dotenv

load_dotenv()

from config.config import ConfigurationError  # noqa: E402
from server.app import create_app  # noqa: E402
from server.dependencies import build_handler  # noqa: E402
from utils.logger import get_logger  # noqa: E402

logger = get_logger(__name__)


def main() -> int:
    try:
        handler = build_handler()
    except ConfigurationError as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"Failed to initialize: {e}", file=sys.stderr)
        return 1

    app = create_app(handler)
    logger.info("Perplexity Intelligent MCP server running")
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
