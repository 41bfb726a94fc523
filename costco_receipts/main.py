#!/usr/bin/env python3
"""
Costco Receipts Main Entry Point - Batch PDF to CSV

1. Recreate the output directory so every run starts empty.
2. Collect every *.pdf in the input directory.
3. Parse each receipt with its own ReceiptAggregator (optionally in threads).
4. Write all transactions, stamped with receipt date and card, to one CSV.
5. Log every receipt whose calculated totals or item count differ from the
   printed ones. Costco sometimes leaves discounts off the receipt, so a
   failed check does not drop the receipt's transactions.
"""

import shutil
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import INPUT_DIR, OUTPUT_DIR, OUTPUT_FILE, LOGGING, SUPPORTED_FORMATS
from .csv_writer import ReceiptCsvWriter
from .logger import setup_logger
from .models import ReceiptChecks, ReceiptSummary, Transaction
from .receipt_aggregator import ReceiptAggregator
from .rule_loader import RuleLoader
from .text_extractor import extract_lines

logger = logging.getLogger(__name__)


@dataclass
class ReceiptResult:
    """Everything parsed from one receipt file"""
    file_path: Path
    transactions: List[Transaction] = field(default_factory=list)
    summary: Optional[ReceiptSummary] = None
    checks: Optional[ReceiptChecks] = None
    error: Optional[str] = None

    def records(self) -> List[Dict[str, Any]]:
        date = self.summary.date if self.summary else None
        card = self.summary.card_last_four if self.summary else None
        return [transaction.to_record(date, card) for transaction in self.transactions]


def parse_receipt_lines(lines: List[str], rules: Optional[Dict[str, Any]] = None) -> Tuple[ReceiptAggregator, List[Transaction]]:
    """Run all lines of one receipt through a fresh aggregator"""
    aggregator = ReceiptAggregator(rules)
    transactions = list(aggregator.process_lines(lines))
    return aggregator, transactions


def process_receipt(pdf_path: Path, rules: Optional[Dict[str, Any]] = None) -> ReceiptResult:
    """
    Parse a single receipt PDF

    Args:
        pdf_path: Path to the receipt PDF
        rules: Parser rules (defaults when None)

    Returns:
        ReceiptResult (error is set when the file could not be read)
    """
    pdf_path = Path(pdf_path)
    try:
        lines = extract_lines(pdf_path)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read {pdf_path.name}: {e}")
        return ReceiptResult(file_path=pdf_path, error=str(e))

    if not lines:
        logger.warning(f"No text extracted from {pdf_path.name}")
        return ReceiptResult(file_path=pdf_path, error='no text extracted')

    aggregator, transactions = parse_receipt_lines(lines, rules)
    result = ReceiptResult(
        file_path=pdf_path,
        transactions=transactions,
        summary=aggregator.summary(),
        checks=aggregator.correctness_checks(),
    )
    logger.info(f"Parsed {pdf_path.name}: {len(result.transactions)} transactions, date {result.summary.date}")
    return result


def report_checks(result: ReceiptResult) -> None:
    """Log the failed correctness checks of one receipt"""
    if not result.checks or result.checks.all_passed:
        return

    logger.warning(f"Check failed for {result.file_path.name}.")
    for check in result.checks.failures():
        if check.name == 'total':
            logger.warning(f" Calculated spend ({check.calculated}) doesn't equal total on receipt ({check.on_receipt}).")
        else:
            logger.warning(f" Calculated items sold ({check.calculated}) does not equal items sold on receipt ({check.on_receipt}).")
    logger.warning(" Double check the receipt to see if the numbers add up. "
                   "Costco sometimes doesn't include discounts for items on the receipt.")


def get_receipt_pdf_paths(input_dir: Path) -> List[Path]:
    return sorted(path for path in Path(input_dir).iterdir() if path.is_file() and path.suffix.lower() in SUPPORTED_FORMATS)


def process_files(input_dir: Path, output_dir: Path, rules_dir: Optional[Path] = None,
                  use_threads: bool = False, output_file: str = OUTPUT_FILE) -> List[ReceiptResult]:
    """
    Parse every receipt PDF in input_dir and write one CSV to output_dir

    Args:
        input_dir: Folder with receipt PDFs
        output_dir: Folder for the CSV (emptied first; must not be or contain input_dir)
        rules_dir: Folder with costco.yaml (packaged rules when None)
        use_threads: Parse receipts in a ThreadPoolExecutor (one aggregator each)
        output_file: CSV file name

    Returns:
        One ReceiptResult per PDF, in file name order (empty when the folders overlap)
    """
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)

    # The output folder is emptied below; it must never hold the receipts
    resolved_input = input_dir.resolve()
    resolved_output = output_dir.resolve()
    if resolved_output == resolved_input or resolved_output in resolved_input.parents:
        logger.error(f"Output directory {output_dir} contains the input directory {input_dir}, refusing to clear it")
        return []

    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)

    rules = RuleLoader(rules_dir).get_parser_rules()
    pdf_paths = get_receipt_pdf_paths(input_dir)
    logger.info(f"Found {len(pdf_paths)} receipt PDFs in {input_dir}")

    if use_threads:
        with ThreadPoolExecutor() as executor:
            results = list(executor.map(lambda path: process_receipt(path, rules), pdf_paths))
    else:
        results = [process_receipt(path, rules) for path in pdf_paths]

    writer = ReceiptCsvWriter(output_dir, output_file, append=True)
    for result in results:
        report_checks(result)
        writer.write(result.records())

    failed = sum(1 for result in results if result.checks and not result.checks.all_passed)
    logger.info(f"Complete: {len(results)} receipts, {failed} with failed checks, output {writer.path}")
    return results


def main() -> None:
    """Main entry point for costco_receipts"""
    import argparse

    parser = argparse.ArgumentParser(
        description='Parse Costco receipt PDFs into a CSV of transactions',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        'input_dir',
        type=str,
        nargs='?',
        default=INPUT_DIR,
        help=f'Input directory containing receipt PDFs (default: {INPUT_DIR})'
    )
    parser.add_argument(
        'output_dir',
        type=str,
        nargs='?',
        default=OUTPUT_DIR,
        help=f'Output directory (default: {OUTPUT_DIR})'
    )
    parser.add_argument(
        '--rules-dir',
        type=str,
        default=None,
        help='Directory containing costco.yaml (default: packaged rules)'
    )
    parser.add_argument(
        '--use-threads',
        action='store_true',
        help='Process files in parallel using ThreadPoolExecutor (default: False)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default=LOGGING['level'],
        help=f"Logging level (default: {LOGGING['level']})"
    )

    args = parser.parse_args()
    setup_logger(args.log_level)

    logger.info(f"Input directory: {args.input_dir}")
    logger.info(f"Output directory: {args.output_dir}")

    process_files(
        Path(args.input_dir),
        Path(args.output_dir),
        Path(args.rules_dir) if args.rules_dir else None,
        use_threads=args.use_threads,
    )


if __name__ == "__main__":
    main()
