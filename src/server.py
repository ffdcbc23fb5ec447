"""Protean Engine runner for the checkout domain.

Starts the Engine, which processes events asynchronously when the domain is
configured with ``event_processing = "async"`` (status notices are then
published by the engine instead of inside the request).

Usage:
    python src/server.py
    python src/server.py --test-mode    # process pending messages and exit
"""

import argparse
import os

from protean.server.engine import Engine

from checkout.domain import checkout
from checkout.utils.logging import configure_logging


def main():
    parser = argparse.ArgumentParser(description="Checkout Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    configure_logging(log_dir=os.environ.get("LOG_DIR"))
    checkout.init()

    engine = Engine(checkout, test_mode=args.test_mode)
    engine.run()


if __name__ == "__main__":
    main()
