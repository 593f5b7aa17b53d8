"""
UX Bench: interaction efficiency recorder.
Entry point for the command line.
"""

import logging
import sys
from pathlib import Path

# Ensure uxbench is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).resolve().parent))

from uxbench.cli import main as cli_main


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler("uxbench.log", encoding="utf-8"),
        ],
    )


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting UX Bench...")
    sys.exit(cli_main())


if __name__ == "__main__":
    main()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Sets up logging (console + uxbench.log) and hands argv to uxbench.cli.
#
# Key points:
#   - sys.path manipulation: `python main.py ...` works from a checkout
#     without installing the package.
#   - The exit code is whatever the chosen subcommand returns.
