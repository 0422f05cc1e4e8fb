"""Entry point to start the light bridge.

Usage:
    uv run python scripts/run_bridge.py                   # Use ./.magicdrc and real controllers
    uv run python scripts/run_bridge.py --mock            # Simulate controllers
    uv run python scripts/run_bridge.py --config ~/.magicdrc

The bridge subscribes to light/{name}/# for every configured controller:
    light/{name}/on       "True" switches on, anything else off
    light/{name}/value    integer 0-255 sets a white-ish level on R, G and B
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from dotenv import load_dotenv

from magicbridge.bridge.config import load_config
from magicbridge.bridge.light_bridge import LightBridge
from magicbridge.devices.magic_home import magic_home_connector, mock_connector
from magicbridge.errors import BridgeError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# State files for mock controllers
MAGICBRIDGE_DIR = Path.home() / ".magicbridge"
ENV_FILE = MAGICBRIDGE_DIR / ".env"


async def main(args: argparse.Namespace) -> int:
    """Main entry point."""
    # Broker credentials may live in .env files
    load_dotenv()
    if ENV_FILE.exists():
        load_dotenv(ENV_FILE)

    try:
        config = load_config(args.config)
    except BridgeError as e:
        logger.error(str(e))
        return 1

    for device in config.devices:
        logger.info(f"   magic home controller: {device.name} {device.address}:{device.port}")

    if args.mock:
        logger.info("Using mock controllers (--mock flag)")
        connector = mock_connector(MAGICBRIDGE_DIR)
    else:
        connector = magic_home_connector()

    bridge = LightBridge(config, connector)

    # Set up graceful shutdown
    shutdown_event = asyncio.Event()

    def handle_signal(sig: signal.Signals):
        logger.info(f"Got signal: {sig.name}")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    logger.info("Starting light bridge...")
    try:
        await bridge.start()
    except BridgeError as e:
        logger.error(f"Failed to start bridge: {e}")
        return 1

    logger.info("BEGIN")
    await shutdown_event.wait()
    logger.info("END")

    logger.info("Stopping bridge...")
    await bridge.stop()
    logger.info("Bridge stopped")

    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Bridge MQTT light topics to Magic Home controllers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Simulate controllers instead of connecting to real ones",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config file (default: ./.magicdrc)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    sys.exit(asyncio.run(main(args)))
