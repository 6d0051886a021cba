#!/usr/bin/env python3
"""Entry point for the Kaspa block-template bridge.

Loads the YAML config, connects to kaspad and Redis, then relays block
templates until interrupted.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv


# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

from kaspa_bridge.bridge import TemplateBridge
from kaspa_bridge.config import DEFAULT_CONFIG_FILE
from kaspa_bridge.exceptions import BridgeConnectionError, ConfigError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Kaspa Template Bridge - relay block templates from kaspad to Redis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  BRIDGE_CONFIG  - Path to the YAML config file (default: ./config.yaml)
  LOG_LEVEL      - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--config",
        default=os.environ.get("BRIDGE_CONFIG", os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)),
        help="Path to the YAML config file (default: ./config.yaml)"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Main entry point for the bridge.

    Raises:
        SystemExit: On configuration or connection errors
    """
    load_dotenv()
    args: argparse.Namespace = parse_args(argv)
    setup_logging(args.log_level)

    logger.info("=== Kaspa Template Bridge Starting ===")

    try:
        bridge: TemplateBridge = TemplateBridge.from_file(args.config)
        await bridge.run()

    except ConfigError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your config file:")
        logger.error("  - kaspad_address: kaspad RPC address (host:port)")
        logger.error("  - block_wait_time: poll interval (e.g. 1s)")
        logger.error("  - redis_address: Redis address (host:port)")
        logger.error("  - redis_channel: channel templates are published on")
        sys.exit(1)

    except BridgeConnectionError as e:
        logger.error(f"Connection Error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully...")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    # Run the main async function
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        # Interrupt arrived before signal handlers were installed
        logger.info("Interrupted, exiting")
        sys.exit(0)
