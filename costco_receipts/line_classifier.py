#!/usr/bin/env python3
"""
Line Classifier - Decide what kind of content a receipt line carries

Classification is a pure function of (line, mode, multiline_active, member_pending):
the same inputs always give the same category. All state lives in ReceiptAggregator.

Rule priority:
1. Header lines (store, street, city/state/zip)
2. Receipt id
3. Member number (same line as "Member" or the line after a bare marker)
4. Trailer metadata (date, items sold, masked card) once the total was seen
5. SUBTOTAL / TAX / ****TOTAL
6. Multiline items, detected by the absence of a currency-shaped substring
7. Single-line transaction
"""

import logging
from typing import Optional

from .models import LineCategory, ParserMode
from .patterns import ReceiptPatterns

logger = logging.getLogger(__name__)


class LineClassifier:
    """Classify one raw receipt line given the current parser state"""

    def __init__(self, patterns: Optional[ReceiptPatterns] = None):
        self.patterns = patterns or ReceiptPatterns()

    def classify(self, line: str, mode: ParserMode, multiline_active: bool = False,
                 member_pending: bool = False) -> LineCategory:
        """
        Classify a line

        Args:
            line: Raw receipt line
            mode: Current parser mode
            multiline_active: True while a multiline item is being assembled
            member_pending: True when the previous line was a bare "Member" marker

        Returns:
            LineCategory for the line
        """
        patterns = self.patterns

        if mode is ParserMode.COLLECTING_HEADER:
            return LineCategory.HEADER

        if mode is ParserMode.COLLECTING_RECEIPT_ID:
            return LineCategory.RECEIPT_ID

        # The member number might be on one or two lines
        #   Member 121549142109
        #   Member
        #   121549142109
        if mode is ParserMode.COLLECTING_MEMBER_ID:
            if member_pending or patterns.member_marker in line:
                return LineCategory.MEMBER_ID_LINE

        if mode is ParserMode.TRAILER:
            return self._classify_trailer(line)

        if patterns.subtotal_marker in line:
            return LineCategory.SUBTOTAL
        if patterns.tax_marker in line:
            return LineCategory.TAX
        if patterns.total_marker in line:
            return LineCategory.TOTAL_MARKER

        # Item identifiers are numeric too, so a price is only recognised by its
        # currency shape (digits, decimal point, two digits)
        #   900091KS
        #   CABERNET
        #   7.99- A
        has_dollar_amount = patterns.has_dollar_amount(line)
        if not multiline_active and not has_dollar_amount:
            return LineCategory.MULTILINE_START
        if multiline_active and not has_dollar_amount:
            return LineCategory.MULTILINE_CONTINUATION
        if multiline_active:
            return LineCategory.MULTILINE_TERMINATOR

        #   1204135 ORG FIRM TO 6.49
        if patterns.transaction.search(line):
            return LineCategory.SINGLE_LINE_TRANSACTION

        return LineCategory.UNRECOGNIZED

    def _classify_trailer(self, line: str) -> LineCategory:
        """Classify post-total metadata lines"""
        if self.patterns.date.search(line):
            return LineCategory.METADATA_DATE
        if self.patterns.items_sold_marker in line:
            return LineCategory.METADATA_ITEM_COUNT
        if self.patterns.card.search(line):
            return LineCategory.METADATA_CARD
        return LineCategory.UNRECOGNIZED
