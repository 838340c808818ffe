"""
Command line entry point: convert a PLM export into the IFS import extracts.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .core.config import DEFAULT_MODULES, load_config
from .core.exceptions import ConfigurationError, FileValidationError, MissingInputError
from .core.logging_config import setup_logging, get_logger
from .pipeline import MigrationPipeline

logger = get_logger(__name__)

MODULE_NAMES = [m.name for m in DEFAULT_MODULES]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert a PLM parts export into IFS import CSV files")
    parser.add_argument("--input", required=True, help="PLM export (.xlsx, .xls or .csv)")
    parser.add_argument("--output-dir", default=None, help="Directory for the generated files (default: output)")
    parser.add_argument("--sheet", default=None, help="Excel sheet name (default: first sheet)")
    parser.add_argument("--attributes", default=None, help="Attribute mapping CSV (PLM;IFS;TYPE)")
    parser.add_argument("--modules", nargs="*", default=None, choices=MODULE_NAMES,
                        help="Modules to run (default: all)")
    parser.add_argument("--no-archive", action="store_true", help="Do not build the IFS zip archive")
    parser.add_argument("--exclude-buy-parents", action="store_true",
                        help="Do not use purchased parts as eng structure parents")
    parser.add_argument("--config", default=None, help="JSON configuration file")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-file", default=None, help="Also write logs to this file")
    parser.add_argument("--structured-logs", action="store_true", help="Emit JSON log records")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level, log_file=args.log_file, structured=args.structured_logs)

    try:
        config = load_config(args.config)
        if args.output_dir:
            config = replace(config, output_directory=Path(args.output_dir))
        if args.attributes:
            config = replace(config, attributes_path=Path(args.attributes))
        if args.no_archive:
            config = replace(config, create_archive=False)
        if args.exclude_buy_parents:
            config = replace(config, exclude_buy_parents=True)
        if args.modules:
            config = config.with_modules(args.modules)

        summary = MigrationPipeline(config).run(args.input, sheet=args.sheet)
    except (ConfigurationError, FileValidationError, MissingInputError) as e:
        logger.error(f"Migration aborted: {e}")
        return 2

    for result in summary.results:
        status = "OK" if result.success else "FAILED"
        logger.info(f"{result.module}: {status} ({result.rows_input} -> {result.rows_output} rows, "
                    f"{len(result.warnings)} warnings)")
        for error in result.errors:
            logger.error(f"{result.module}: {error}")
        for warning in result.warnings:
            logger.warning(f"{result.module}: {warning}")

    if summary.archive_path:
        logger.info(f"Archive: {summary.archive_path}")
    logger.info(f"Migration for project {summary.project_code} finished in {summary.duration:.2f}s: "
                f"{summary.total_errors} errors, {summary.total_warnings} warnings")
    return 0 if summary.success else 1


if __name__ == "__main__":
    sys.exit(main())
