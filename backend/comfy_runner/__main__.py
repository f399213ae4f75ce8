"""
Runner entry point - Run with: python -m comfy_runner <workflow.json>
"""

import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger("comfy_runner")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="comfy-runner",
        description="Submit a workflow, wait for it to finish, and download its output",
    )
    parser.add_argument(
        "workflow",
        help="Path to the workflow JSON file to submit"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check that every workflow has a matching test file before running "
             "(same as RUN_VERIFY=true)"
    )
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Suppress noisy library loggers even in verbose mode
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    from .base import RunnerError
    from .config import RunnerConfig
    from .runner import WorkflowRunner

    args = parse_args(argv)

    # Load .env before reading any configuration from the environment
    load_dotenv()
    configure_logging(args.verbose)

    try:
        config = RunnerConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.verify:
        config.run_verify = True

    logger.debug(f"Configuration: {config}")

    try:
        WorkflowRunner(config).run_file(args.workflow)
    except RunnerError as e:
        logger.error(f"Test failed: {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
