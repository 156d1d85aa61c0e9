from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

from features.clash_failover.domain.errors import ConfigurationError
from features.clash_failover.infrastructure.controller_factory import build_supervisor
from features.clash_failover.infrastructure.settings import DEFAULT_CONFIG_PATH, load_config

logger = logging.getLogger("autoclash")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="autoclash",
        description="Keep a Clash selector group on a healthy, fast and cheap node",
    )
    parser.add_argument("-c", "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="config file path")
    parser.add_argument("--log-level", default=None, help="override log_level from the config")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = load_config(args.config)
        configure_logging(args.log_level or config.log_level)
        supervisor = build_supervisor(config)
    except ConfigurationError as exc:
        configure_logging()
        logger.error("Loading configuration failed: %s", exc)
        return 2

    def _exit(signum, frame):  # noqa: ARG001
        sys.exit(0)

    if threading.current_thread() is threading.main_thread():
        signal.signal(signal.SIGTERM, _exit)
        signal.signal(signal.SIGINT, _exit)

    logger.info("Watching %s at %s", config.select_node, config.api_endpoint)
    supervisor.start()
    supervisor.wait()
    return 0


if __name__ == "__main__":
    sys.exit(main())
