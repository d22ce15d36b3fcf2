#!/usr/bin/env python3
"""
Bank Statement Converter - Main Entry Point.

This is the main entry point for the statement converter. It provides
both a command-line interface and programmatic access to the conversion
pipeline.

Usage:
    Command Line:
        python main.py --input statement.pdf --output statement.xlsx
        python main.py --input scan.pdf --engine rules --ocr-backend tesseract --print

    Python:
        from main import run_conversion
        result = asyncio.run(run_conversion("statement.pdf"))

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from statement_converter.utils.logger import ROOT_LOGGER_NAME, get_logger, setup_logger_from_config
from statement_converter.utils.exceptions import StatementConversionError


def page_number(value: str) -> int:
    """argparse type for 1-based page numbers."""
    try:
        page = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid page number: {value!r}")
    if page < 1:
        raise argparse.ArgumentTypeError(f"page numbers start at 1, got {page}")
    return page


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Bank Statement PDF to Excel Converter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Convert a statement with the configured engines:
        python main.py --input statement.pdf --output statement.xlsx

    Offline conversion, print the table instead of only saving it:
        python main.py --input statement.pdf --engine rules --print
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Input PDF statement"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output .xlsx file (default: <output_dir>/<input name>.xlsx)"
    )

    # Processing options
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--page",
        type=page_number,
        default=None,
        help="1-based page to OCR when the PDF is a scan (default: first page)"
    )

    parser.add_argument(
        "--engine",
        choices=["gemini", "rules"],
        default=None,
        help="Transaction extraction engine (default: from config)"
    )

    parser.add_argument(
        "--ocr-backend",
        choices=["tesseract", "gemini"],
        default=None,
        help="OCR backend for scanned statements (default: from config)"
    )

    parser.add_argument(
        "--print",
        dest="print_table",
        action="store_true",
        help="Print the extracted table to stdout"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize configuration and logging, applying command-line overrides.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    if args.engine:
        config.override("extraction.engine", args.engine)
    if args.ocr_backend:
        config.override("ocr.backend", args.ocr_backend)

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("BANK STATEMENT CONVERTER")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")

    return config


async def run_conversion(
    input_path: str,
    output_path: Optional[str] = None,
    page_index: Optional[int] = None
):
    """
    Convert one PDF statement and save it as an Excel file.

    Args:
        input_path: Path to the PDF statement.
        output_path: Target .xlsx path. If None, derived from the input name.
        page_index: Zero-based page to OCR for scanned statements.

    Returns:
        Tuple of (ConversionResult, path of the written workbook).

    Example:
        >>> result, path = asyncio.run(run_conversion("statement.pdf"))
        >>> print(len(result.transactions), path)
    """
    logger = get_logger(__name__)

    from statement_converter.input_handler import InputHandler, initialize_pdf_runtime
    from statement_converter.output_handler import ExcelExporter
    from statement_converter.pipeline import ConversionPipeline

    initialize_pdf_runtime()

    pdf_bytes = InputHandler().read(input_path)

    logger.info("Initializing pipeline components...")
    pipeline = ConversionPipeline()
    result = await pipeline.convert(
        pdf_bytes,
        page_index=page_index,
        on_state=lambda state: logger.info(f"  -> {state.value.replace('_', ' ')}")
    )

    exporter = ExcelExporter()
    if output_path:
        output_p = Path(output_path)
        saved_path = exporter.export(result.table, output_p.name, str(output_p.parent))
    else:
        saved_path = exporter.export(result.table, f"{Path(input_path).stem}.xlsx")

    return result, saved_path


def print_table(table) -> None:
    """Print a TableMatrix as aligned plain-text columns."""
    widths = [max(len(row[col]) for row in table) for col in range(len(table[0]))]
    for row in table:
        print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())


def main(argv: Optional[list] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        args = parse_arguments(argv)

        initialize_system(args)
        logger = get_logger(__name__)

        page_index = args.page - 1 if args.page is not None else None

        result, saved_path = asyncio.run(
            run_conversion(args.input, args.output, page_index=page_index)
        )

        if args.print_table:
            print_table(result.table)

        if result.malformed_response:
            logger.warning("The extraction engine returned no usable transaction list")
        elif not result.transactions:
            logger.warning("No transactions found in the statement")

        logger.info("=" * 60)
        logger.info(
            f"Conversion complete: {len(result.transactions)} transactions "
            f"({result.mode.value}) -> {saved_path}"
        )
        logger.info("=" * 60)

        return 0

    except StatementConversionError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if "--debug" in sys.argv:
            print(f"Details: {e.details}", file=sys.stderr)
        return 1

    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if "--debug" in sys.argv:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
