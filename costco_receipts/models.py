#!/usr/bin/env python3
"""
Data models for Costco receipt parsing
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from .amount_parser import format_amount


class ParserMode(str, Enum):
    """Document-level state of the receipt aggregator (only moves forward)"""
    COLLECTING_HEADER = "collecting_header"
    COLLECTING_RECEIPT_ID = "collecting_receipt_id"
    COLLECTING_MEMBER_ID = "collecting_member_id"
    BODY = "body"
    TRAILER = "trailer"


class LineCategory(str, Enum):
    """What kind of content a single receipt line holds"""
    HEADER = "header"
    RECEIPT_ID = "receipt_id"
    MEMBER_ID_LINE = "member_id_line"
    SUBTOTAL = "subtotal"
    TAX = "tax"
    TOTAL_MARKER = "total_marker"
    MULTILINE_START = "multiline_start"
    MULTILINE_CONTINUATION = "multiline_continuation"
    MULTILINE_TERMINATOR = "multiline_terminator"
    SINGLE_LINE_TRANSACTION = "single_line_transaction"
    METADATA_DATE = "metadata_date"
    METADATA_ITEM_COUNT = "metadata_item_count"
    METADATA_CARD = "metadata_card"
    UNRECOGNIZED = "unrecognized"


class TransactionKind(str, Enum):
    """Classification of an emitted transaction"""
    PURCHASE = "purchase"
    DISCOUNT = "discount"
    RETURN = "return"
    TAX = "tax"


# Identifier prefixes used at the output boundary
KIND_PREFIXES = {
    TransactionKind.PURCHASE: '',
    TransactionKind.TAX: '',
    TransactionKind.DISCOUNT: 'D-',
    TransactionKind.RETURN: 'R-',
}


def next_mode(mode: ParserMode, category: LineCategory, header_lines: int = 0,
              header_line_count: int = 3, member_pending: bool = False) -> ParserMode:
    """
    Compute the parser mode after a line of the given category was consumed
    
    Args:
        mode: Mode before the line
        category: Category of the consumed line
        header_lines: Header lines collected so far (including this one)
        header_line_count: Header lines expected before the receipt id
        member_pending: True when a bare "Member" marker still waits for its number
        
    Returns:
        Mode for the next line
    """
    if mode is ParserMode.TRAILER:
        return mode
    if category is LineCategory.HEADER:
        return ParserMode.COLLECTING_RECEIPT_ID if header_lines >= header_line_count else ParserMode.COLLECTING_HEADER
    if category is LineCategory.RECEIPT_ID:
        return ParserMode.COLLECTING_MEMBER_ID
    if category is LineCategory.MEMBER_ID_LINE:
        return ParserMode.COLLECTING_MEMBER_ID if member_pending else ParserMode.BODY
    if category is LineCategory.TOTAL_MARKER:
        return ParserMode.TRAILER
    return mode


@dataclass(frozen=True)
class Transaction:
    """A single emitted receipt record"""
    kind: TransactionKind
    base_identifier: str
    item_name: str
    amount: Decimal
    is_taxable: bool
    
    @property
    def item_identifier(self) -> str:
        """Identifier with its classification prefix (D- discount, R- return)"""
        return f"{KIND_PREFIXES[self.kind]}{self.base_identifier}"
    
    @classmethod
    def tax(cls, amount: Decimal) -> 'Transaction':
        return cls(TransactionKind.TAX, 'TAX', 'TAX', amount, False)
    
    def to_record(self, date: Optional[str] = None, card_last_four: Optional[str] = None) -> Dict[str, Any]:
        """Flatten into the row shape written by the CSV sink"""
        return {
            'date': date or '',
            'item_identifier': self.item_identifier,
            'item_name': self.item_name,
            'amount': format_amount(self.amount),
            'is_taxable': 'Y' if self.is_taxable else 'N',
            'card_last_four': card_last_four or '',
        }


@dataclass
class ReceiptSummary:
    """Receipt-level aggregates and metadata"""
    store: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    receipt_id: Optional[str] = None
    member_id: Optional[str] = None
    date: Optional[str] = None
    card_last_four: Optional[str] = None
    subtotal: Decimal = Decimal('0')
    tax: Decimal = Decimal('0')
    total: Decimal = Decimal('0')
    total_calculated: Decimal = Decimal('0')
    items_sold_on_receipt: Optional[int] = None
    items_sold_calculated: int = 0


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one post-parse correctness check"""
    name: str
    passed: bool
    calculated: Any
    on_receipt: Any


@dataclass(frozen=True)
class ReceiptChecks:
    items_sold: CheckResult
    total: CheckResult
    
    @property
    def all_passed(self) -> bool:
        return self.items_sold.passed and self.total.passed
    
    def failures(self) -> list:
        return [check for check in (self.items_sold, self.total) if not check.passed]
