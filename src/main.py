import io
import logging
import os
import sys

from engine import PaymentsEngine
from errors import PaymentsError

logger = logging.getLogger(__name__)

DEFAULT_LOG_LEVEL = "WARNING"


def configure_logging() -> None:
    """Log to stderr; the level comes from PAYMENTS_LOG_LEVEL."""
    level_name = os.environ.get("PAYMENTS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    filepath = argv[0]
    engine = PaymentsEngine()
    try:
        engine.process_file(filepath)
    except PaymentsError as e:
        logger.error(f"Failed to process transactions: {e}")
        return 1
    except OSError as e:
        logger.error(f"Failed to open input file {filepath}: {e}")
        return 1

    # stdout receives either the whole CSV or nothing
    output = io.StringIO()
    engine.export_accounts(output)
    sys.stdout.write(output.getvalue())
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
