#!/usr/bin/env python3
"""
CSV Writer - Persist transaction records to a CSV file
"""

import csv
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from .config import CSV_COLUMNS

logger = logging.getLogger(__name__)


class ReceiptCsvWriter:
    """Write transaction records (dicts keyed like CSV_COLUMNS) to one CSV file"""
    
    def __init__(self, output_dir: Path, file_name: str, columns: Optional[Dict[str, str]] = None,
                 append: bool = True):
        """
        Args:
            output_dir: Directory for the CSV file (created if missing)
            file_name: CSV file name
            columns: Record key -> column title (default: config.CSV_COLUMNS)
            append: Append to an existing file instead of replacing it
        """
        self.output_dir = Path(output_dir)
        self.path = self.output_dir / file_name
        self.columns = columns or CSV_COLUMNS
        self.append = append
    
    def write(self, records: Iterable[Dict]) -> int:
        """
        Write records and return how many rows were written
        
        The title row is written only when the file is new or empty.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        needs_header = not self.append or not self.path.exists() or self.path.stat().st_size == 0
        mode = 'a' if self.append else 'w'
        
        keys = list(self.columns)
        count = 0
        with open(self.path, mode, newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=keys, extrasaction='ignore')
            if needs_header:
                writer.writerow(self.columns)
            for record in records:
                writer.writerow({key: record.get(key, '') for key in keys})
                count += 1
        
        logger.debug(f"{self.path} written successfully ({count} rows)")
        return count
