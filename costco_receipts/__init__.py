"""
Costco Receipts: parse Costco receipt text into transactions
Classifies each receipt line, reassembles multiline items, links discounts and
returns to their purchases, and checks the computed totals against the receipt.
"""

from .amount_parser import AmountParseError, parse_amount, round_cents
from .identity_resolver import ItemIdentityIndex, ItemIdentityResolver
from .line_classifier import LineClassifier
from .models import (
    CheckResult,
    LineCategory,
    ParserMode,
    ReceiptChecks,
    ReceiptSummary,
    Transaction,
    TransactionKind,
)
from .multiline_assembler import MultilineAssembler, MultilineBuffer
from .patterns import ReceiptPatterns
from .receipt_aggregator import ReceiptAggregator
from .rule_loader import RuleLoader
from .transaction_parser import TransactionParser

__all__ = [
    'AmountParseError',
    'parse_amount',
    'round_cents',
    'ItemIdentityIndex',
    'ItemIdentityResolver',
    'LineClassifier',
    'CheckResult',
    'LineCategory',
    'ParserMode',
    'ReceiptChecks',
    'ReceiptSummary',
    'Transaction',
    'TransactionKind',
    'MultilineAssembler',
    'MultilineBuffer',
    'ReceiptPatterns',
    'ReceiptAggregator',
    'RuleLoader',
    'TransactionParser',
]
