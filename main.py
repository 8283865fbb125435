#!/usr/bin/env python3
"""
Document Extraction Pipeline - Main Entry Point.

This is the command-line entry point for the document extraction
pipeline. It also exposes run_extraction() for programmatic use.

Usage:
    Command Line:
        python main.py --input receipt.pdf
        python main.py --input ./receipts/ --output results.json --force-ocr

    Python:
        from main import run_extraction
        batch = run_extraction("receipt.pdf")

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from config import ConfigurationManager
from docextract.input_handler import InputHandler
from docextract.pipeline import BatchProcessingResult, DocumentProcessor, ProcessingOptions
from docextract.utils.logger import get_logger, set_log_level, setup_logger_from_config
from docextract.utils.helpers import ensure_directory


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Extract dates, amounts and vendors from financial documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process a single receipt:
        python main.py --input receipt.pdf

    Process a directory into a JSON file:
        python main.py --input ./receipts/ --output results.json

    OCR scanned German invoices:
        python main.py --input scan.pdf --force-ocr --lang deu --currency EUR
        """
    )

    # Input/Output arguments
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Input file or directory containing documents"
    )

    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output JSON file (default: print to stdout)"
    )

    # Processing options
    parser.add_argument(
        "--force-ocr",
        action="store_true",
        help="OCR PDFs even when they have a text layer"
    )

    parser.add_argument(
        "--lang", "-l",
        type=str,
        default=None,
        help="OCR language code, e.g. eng, deu, en (default: from configuration)"
    )

    parser.add_argument(
        "--currency",
        type=str,
        default=None,
        help="Currency reported when none is detected (default: USD)"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
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
    Initialize the pipeline with configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    if args.config:
        ConfigurationManager.reset()
    config = ConfigurationManager(args.config)

    logger = setup_logger_from_config()

    if args.debug:
        set_log_level("DEBUG")

    logger.info("=" * 60)
    logger.info("DOCUMENT EXTRACTION PIPELINE")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Output: {args.output or 'stdout'}")

    return config


def validate_inputs(input_path: str) -> List[Path]:
    """
    Validate the input path and return the files to process.

    Raises:
        FileNotFoundError: If the input path doesn't exist.
        ValueError: If a single input file has an unsupported extension.
    """
    logger = get_logger(__name__)
    handler = InputHandler()
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")

    if path.is_file():
        if not handler.is_supported(path):
            raise ValueError(f"Unsupported file type: {path.suffix or path.name}")
        return [path]

    files = handler.find_files(path)
    if not files:
        logger.warning(f"No supported files found in: {path}")
    return files


def run_extraction(
    input_path: str,
    force_ocr: bool = False,
    language: Optional[str] = None,
    currency: Optional[str] = None
) -> BatchProcessingResult:
    """
    Run the extraction pipeline over a file or directory.

    Args:
        input_path: Path to input file or directory.
        force_ocr: OCR PDFs even when they have a text layer.
        language: OCR language code.
        currency: Default currency code.

    Returns:
        BatchProcessingResult for every supported file.

    Example:
        >>> batch = run_extraction("receipts/")
        >>> for result in batch.successful:
        ...     print(result.entities.amount)
    """
    logger = get_logger(__name__)
    handler = InputHandler()

    documents = [handler.load(path) for path in validate_inputs(input_path)]
    logger.info(f"Processing {len(documents)} file(s)...")

    options = ProcessingOptions(
        force_ocr=force_ocr,
        ocr_language=language,
        default_currency=currency
    )

    with DocumentProcessor() as processor:
        batch = processor.process_batch(documents, options)

    for result in batch.successful:
        entities = result.entities
        logger.info(
            f"  {result.file_metadata.original_name}: "
            f"date={entities.date.value if entities.date else 'N/A'}, "
            f"amount={entities.amount.value if entities.amount else 'N/A'} {entities.currency}, "
            f"vendor={entities.vendor.value if entities.vendor else 'N/A'}, "
            f"confidence={result.confidence:.2f}"
        )
    for failure in batch.failed:
        logger.error(f"  {failure.file_name}: {failure.error['message']}")

    return batch


def write_results(batch: BatchProcessingResult, output_path: Optional[str]) -> None:
    """Write batch results as JSON to a file, or to stdout."""
    payload = json.dumps(batch.to_dict(), indent=2, ensure_ascii=False)

    if output_path is None:
        sys.stdout.write(payload + "\n")
        return

    path = Path(output_path)
    ensure_directory(path.parent)
    path.write_text(payload, encoding='utf-8')
    get_logger(__name__).info(f"Results written to: {path}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, 1 for errors, 130 when interrupted).
    """
    args = None
    try:
        args = parse_arguments(argv)

        initialize_system(args)
        logger = get_logger(__name__)

        batch = run_extraction(
            input_path=args.input,
            force_ocr=args.force_ocr,
            language=args.lang,
            currency=args.currency
        )

        if batch.total == 0:
            logger.error("No files to process")
            return 1

        write_results(batch, args.output)

        logger.info("=" * 60)
        logger.info(
            f"Extraction complete. {len(batch.successful)}/{batch.total} files "
            f"succeeded in {batch.total_time_ms}ms."
        )
        logger.info("=" * 60)

        return 0 if not batch.failed else 1

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if args is not None and args.debug:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
