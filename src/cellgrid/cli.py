from __future__ import annotations

import argparse
import logging
import os
import sys

from cellgrid.core.rows import RowsError, load_rows
from cellgrid.core.settings import SettingsError, load_settings
from cellgrid.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="cellgrid", description="cellgrid spreadsheet editor (Textual)")
    parser.add_argument("path", help="Path to a CSV, TSV or YAML data file")
    parser.add_argument("--settings", help="Grid settings YAML (defaults to the user config dir)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging, also to the console")
    parser.add_argument("--log-file", help="Write logs to this file instead of the default log dir")
    args = parser.parse_args(argv)

    configure_logging(debug=args.debug, log_path=args.log_file)

    if not os.path.exists(args.path):
        print(f"cellgrid: file not found: {args.path}", file=sys.stderr)
        return 2

    try:
        settings = load_settings(args.settings)
        rows, columns = load_rows(args.path)
    except SettingsError as e:
        logger.error("Invalid settings: %s", e)
        print("cellgrid: invalid settings:", file=sys.stderr)
        for err in e.errors:
            print(f"  - {err}", file=sys.stderr)
        return 2
    except RowsError as e:
        logger.error("Cannot load %s: %s", args.path, e)
        print(f"cellgrid: {e}", file=sys.stderr)
        return 2

    logger.info("Opening %s (%d rows, %d columns)", args.path, len(rows), len(columns))

    # Textual is only needed once there is something to show
    from cellgrid.app import CellGridApp

    app = CellGridApp(args.path, rows, columns, settings=settings)
    app.run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
