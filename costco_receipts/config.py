#!/usr/bin/env python3
"""
Configuration file for Costco Receipt Parser
Edit these values according to your local folder setup
"""

from pathlib import Path

# Workflow Folder Structure
# Input: folder of Costco receipt PDFs (one receipt per file)
# Output: one CSV with every transaction of every receipt
INPUT_DIR = 'costco-receipt-pdfs'
OUTPUT_DIR = 'out'
OUTPUT_FILE = 'costco-receipts.csv'

# Rule files directory (parsing markers, tax codes, spacing fixes)
# See rules/costco.yaml for the documented defaults
RULES_DIR = Path(__file__).parent / 'rules'
RULES_FILE = 'costco.yaml'

# Set to '1' to re-read rule files when their checksum changes
HOT_RELOAD_ENV_VAR = 'COSTCO_RULES_HOT_RELOAD'

# CSV columns (record key -> column title)
CSV_COLUMNS = {
    'date': 'Date',
    'item_identifier': 'Item identifier',
    'item_name': 'Item name',
    'amount': 'Amount',
    'is_taxable': 'Taxable',
    'card_last_four': 'Card used',
}

# Receipt files picked up from INPUT_DIR
SUPPORTED_FORMATS = ['.pdf']

# Text Extraction Settings
TEXT_EXTRACTION_THRESHOLD = 20          # Minimum characters to consider text extraction successful

# Logging Settings
LOGGING = {
    'level': 'INFO',                   # DEBUG, INFO, WARNING, ERROR
    'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'log_dir': 'logs',
    'log_file': 'costco_receipts.log',
}
