"""Command-line entry point of the comms module."""

from __future__ import annotations

import argparse
import dataclasses
import sys
import time

from .config import config_from_env
from .logger import Logger
from .netmanager import READ_INTERVAL, NetManager
from .packet_handler import PacketHandler

TAG = "main"


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wettorion-comms", description="Connect to the backend and serve its requests."
    )
    parser.add_argument("--host", help="backend host name or address")
    parser.add_argument("--port", type=int, help="backend TCP port")
    parser.add_argument("--tries", type=int, help="connection attempts before giving up")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    overrides = {
        name: value
        for name, value in (
            ("net_host", args.host),
            ("net_port", args.port),
            ("net_connect_tries", args.tries),
        )
        if value is not None
    }
    config = dataclasses.replace(config_from_env(), **overrides)
    logger = Logger(enabled=config.log_enabled, debug_enabled=config.log_debug_enabled)

    if config.log_enabled:
        print("-" * 36, flush=True)
    logger.info(TAG, "Hallo! Wettorion v1 - Comms-Module")

    manager = NetManager(config, logger)
    manager.on_packet = PacketHandler(manager, logger, config.net_reconnect_wait).handle_packet

    logger.info(TAG, "Setting up the network...")
    if not manager.init_client():
        logger.fatal(TAG, "Failed to set up the network!")
        return 1

    try:
        while True:
            manager.update()
            time.sleep(READ_INTERVAL)
    except KeyboardInterrupt:
        manager.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(main())