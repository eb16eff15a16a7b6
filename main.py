"""
idOS Auto Daily Check-in - Main Entry Point

Loads the private keys and (optionally) proxies, asks once whether to use
proxies, then runs the check-in cycle for every account and repeats it
every 24 hours.

Usage:
    python main.py               # Ask about proxies, run forever
    python main.py --proxy       # Use proxy.txt without asking
    python main.py --no-proxy    # Direct connection without asking
    python main.py --once        # Run a single cycle and exit
"""
from dotenv import load_dotenv

# Load environment variables from .env file into os.environ
load_dotenv()

import asyncio
import argparse
import logging
import signal
import sys
from typing import List, Optional

from core.config import BotSettings, RunConfig
from core.logging_setup import setup_logging
from core.orchestrator import AccountOrchestrator, CycleScheduler
from core.proxy_manager import load_proxies
from core.utils import load_private_keys

logger = logging.getLogger(__name__)


def ask_use_proxy(prompt=input) -> bool:
    """Ask the user whether to route traffic through proxies."""
    try:
        answer = prompt("Do You Want Use Proxy? (y/n): ")
    except EOFError:
        return False
    return answer.strip().lower() == "y"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="idOS Auto Daily Check-in")
    proxy_group = parser.add_mutually_exclusive_group()
    proxy_group.add_argument(
        "--proxy", dest="use_proxy", action="store_const", const=True,
        help="Use proxies from the proxy file without prompting",
    )
    proxy_group.add_argument(
        "--no-proxy", dest="use_proxy", action="store_const", const=False,
        help="Connect directly without prompting",
    )
    parser.add_argument(
        "--once", action="store_true", help="Run a single cycle and exit",
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Override the configured log level (e.g. DEBUG)",
    )
    return parser.parse_args(argv)


def build_run_config(settings: BotSettings, use_proxy: bool) -> RunConfig:
    """Load proxies if requested and freeze the proxy decision."""
    proxies = load_proxies(settings.proxies_file) if use_proxy else []
    return RunConfig.build(use_proxy, proxies)


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main execution loop.

    1. Parses command line arguments and sets up logging.
    2. Resolves the proxy choice once (flag or interactive prompt).
    3. Starts the CycleScheduler and waits for SIGTERM or interruption.
    """
    args = parse_args(argv)
    settings = BotSettings()
    setup_logging(args.log_level or settings.log_level)

    use_proxy = args.use_proxy
    if use_proxy is None:
        use_proxy = ask_use_proxy()
    run_config = build_run_config(settings, use_proxy)

    scheduler = CycleScheduler(
        settings,
        AccountOrchestrator(settings),
        run_config,
        key_loader=lambda: load_private_keys(settings.private_keys_file),
    )

    def handle_sigterm():
        logger.info("Received SIGTERM. Stopping after the current cycle...")
        scheduler.stop()

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGTERM, handle_sigterm)

    if args.once:
        await scheduler.run_once()
    else:
        await scheduler.run_forever()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except Exception as e:
        logger.critical("Fatal error: %s", e, exc_info=True)
        sys.exit(1)
