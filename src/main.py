import argparse
import logging
import sys
from typing import List, Optional

from csv_io import read_transactions_from_file, write_accounts
from engine import TransactionEngine

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toy-payments",
        description="Apply a CSV stream of transactions and print the resulting client accounts.",
    )
    parser.add_argument("input", help="Path to input CSV file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        type=str.upper,
        help="Diagnostics verbosity on stderr (default: WARNING)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )

    engine = TransactionEngine()
    try:
        ledger = engine.process(read_transactions_from_file(args.input))
    except OSError as e:
        logger.error(f"Failed to read {args.input}: {e}")
        return 1

    write_accounts(ledger.snapshot(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
