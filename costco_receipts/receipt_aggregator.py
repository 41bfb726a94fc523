#!/usr/bin/env python3
"""
Receipt Aggregator - Drive the per-line state machine for one Costco receipt

Modes (strictly forward):
    COLLECTING_HEADER -> COLLECTING_RECEIPT_ID -> COLLECTING_MEMBER_ID -> BODY -> TRAILER

Lines are fed one at a time through process_line(); each call returns the
Transaction the line produced (if any). Once the lines are exhausted, the
summary and the correctness checks are read from the aggregator.

One aggregator holds the state of exactly one receipt. Use a new instance per document.
"""

import re
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional

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
    next_mode,
)
from .multiline_assembler import MultilineAssembler
from .patterns import ReceiptPatterns
from .transaction_parser import TransactionParser

logger = logging.getLogger(__name__)

# AUSTIN,TX78759  /  AUSTIN, TX 78759
_CITY_STATE_ZIP = re.compile(r'^(?P<city>[^,]+),\s*(?P<state>[A-Z]{2})\s*(?P<zip>\d{5})')
_ITEM_COUNT = re.compile(r'\d+')


class ReceiptAggregator:
    """Stateful parser for the lines of a single receipt"""

    def __init__(self, rules: Optional[Dict[str, Any]] = None):
        """
        Args:
            rules: Parser rules from RuleLoader.get_parser_rules() (defaults when None)
        """
        self.patterns = ReceiptPatterns(rules)
        self.classifier = LineClassifier(self.patterns)
        self.assembler = MultilineAssembler(self.patterns)
        self.resolver = ItemIdentityResolver(self.patterns.tax_exempt_codes)
        self.transaction_parser = TransactionParser(self.patterns, self.resolver)
        self.index = ItemIdentityIndex()

        self.mode = ParserMode.COLLECTING_HEADER
        self.store_lines: List[str] = []
        self.receipt_id: Optional[str] = None
        self.member_id: Optional[str] = None
        self.member_pending = False
        self.date: Optional[str] = None
        self.card_last_four: Optional[str] = None
        self.subtotal = Decimal('0')
        self.tax = Decimal('0')
        self.total = Decimal('0')
        self.total_calculated = Decimal('0')
        self.items_sold_on_receipt: Optional[int] = None
        self.items_sold_calculated = 0

    def process_lines(self, lines: Iterable[str]) -> Iterator[Transaction]:
        """Feed every non-empty line and yield the transactions they produce"""
        for line in lines:
            if not line or not line.strip():
                continue
            transaction = self.process_line(line)
            if transaction is not None:
                yield transaction

    def process_line(self, line: str) -> Optional[Transaction]:
        """
        Consume one receipt line

        Args:
            line: Raw receipt line

        Returns:
            Transaction produced by the line, or None
        """
        category = self.classifier.classify(line, self.mode, self.assembler.is_active, self.member_pending)
        transaction = None

        if category is LineCategory.HEADER:
            self.store_lines.append(line.strip())
        elif category is LineCategory.RECEIPT_ID:
            self.receipt_id = line.strip()
        elif category is LineCategory.MEMBER_ID_LINE:
            self._consume_member_line(line)
        elif category is LineCategory.SUBTOTAL:
            amount = self._marker_amount(line, self.patterns.subtotal_marker)
            if amount is not None:
                self.subtotal = amount
        elif category is LineCategory.TAX:
            amount = self._marker_amount(line, self.patterns.tax_marker)
            if amount is not None:
                self.tax = amount
                transaction = Transaction.tax(amount)
        elif category is LineCategory.TOTAL_MARKER:
            amount = self._marker_amount(line, self.patterns.total_marker)
            if amount is not None:
                self.total = amount
            abandoned = self.assembler.discard()
            if abandoned:
                logger.warning(f"Multiline item {abandoned.pending_identifier!r} never received an amount")
        elif category is LineCategory.MULTILINE_START:
            self.assembler.start(line)
        elif category is LineCategory.MULTILINE_CONTINUATION:
            self.assembler.append(line)
        elif category is LineCategory.MULTILINE_TERMINATOR:
            transaction = self._finish_multiline(line)
        elif category is LineCategory.SINGLE_LINE_TRANSACTION:
            transaction = self._parse_single_line(line)
        elif category is LineCategory.METADATA_DATE:
            self._consume_date(line)
        elif category is LineCategory.METADATA_ITEM_COUNT:
            self._consume_item_count(line)
        elif category is LineCategory.METADATA_CARD:
            self.card_last_four = self.patterns.card.search(line).group(1)
        else:
            logger.debug(f"Skipping unrecognized line ({self.mode.value}): {line!r}")

        self.mode = next_mode(
            self.mode,
            category,
            header_lines=len(self.store_lines),
            header_line_count=self.patterns.header_line_count,
            member_pending=self.member_pending,
        )

        if transaction is not None and transaction.kind is not TransactionKind.TAX:
            self._account(transaction)
        return transaction

    def _account(self, transaction: Transaction) -> None:
        self.total_calculated += transaction.amount
        if transaction.kind is TransactionKind.PURCHASE:
            self.items_sold_calculated += 1
        elif transaction.kind is TransactionKind.RETURN:
            self.items_sold_calculated -= 1

    def _consume_member_line(self, line: str) -> None:
        if self.member_pending:
            self.member_id = line.strip()
            self.member_pending = False
            return

        number = line.replace(self.patterns.member_marker, '', 1).strip()
        if self.patterns.member_digits.search(number):
            self.member_id = number
        else:
            self.member_pending = True

    def _marker_amount(self, line: str, marker: str) -> Optional[Decimal]:
        """Parse the amount following a marker; None when unparsable"""
        text = self.patterns.find_after(line, marker) or ''
        match = self.patterns.dollar_token.search(text)
        try:
            return parse_amount(match.group(1) if match else text)
        except AmountParseError as e:
            logger.warning(f"Could not read amount after {marker!r}: {e}")
            return None

    def _finish_multiline(self, line: str) -> Optional[Transaction]:
        try:
            amount, name, raw_identifier = self.assembler.finish(line)
        except AmountParseError as e:
            logger.warning(f"Discarding multiline item: {e}")
            return None
        return self.resolver.resolve(amount, name, raw_identifier, self.index)

    def _parse_single_line(self, line: str) -> Optional[Transaction]:
        try:
            return self.transaction_parser.parse_and_resolve(line, self.index)
        except AmountParseError as e:
            logger.debug(f"Skipping line with malformed amount: {e}")
            return None

    def _consume_date(self, line: str) -> None:
        # Keep the first date; later dates on the trailer are return-policy or survey text
        if self.date is None:
            self.date = self.patterns.date.search(line).group(1)

    def _consume_item_count(self, line: str) -> None:
        text = self.patterns.find_after(line, self.patterns.items_sold_marker) or ''
        match = _ITEM_COUNT.search(text)
        if match:
            self.items_sold_on_receipt = int(match.group(0))
        else:
            logger.warning(f"Items sold line without a count: {line!r}")

    def get_store(self) -> Dict[str, Optional[str]]:
        """
        Split the header lines into store fields

        store_lines might look like:
            ['AUSTIN #681', '10401 RESEARCH BLVD', 'AUSTIN,TX78759']
        """
        lines = self.store_lines + [None] * (3 - len(self.store_lines))
        store = {
            'store': lines[0],
            'street': lines[1],
            'city': lines[2],
            'state': None,
            'zip_code': None,
        }
        if lines[2]:
            match = _CITY_STATE_ZIP.match(lines[2])
            if match:
                store['city'] = match.group('city').strip()
                store['state'] = match.group('state')
                store['zip_code'] = match.group('zip')
        return store

    def summary(self) -> ReceiptSummary:
        return ReceiptSummary(
            receipt_id=self.receipt_id,
            member_id=self.member_id,
            date=self.date,
            card_last_four=self.card_last_four,
            subtotal=self.subtotal,
            tax=self.tax,
            total=self.total,
            total_calculated=self.total_calculated,
            items_sold_on_receipt=self.items_sold_on_receipt,
            items_sold_calculated=self.items_sold_calculated,
            **self.get_store(),
        )

    def get_total_spent(self) -> Decimal:
        """Printed subtotal plus tax"""
        return self.subtotal + self.tax

    def items_sold_check(self) -> CheckResult:
        passed = self.items_sold_calculated == self.items_sold_on_receipt
        if not passed:
            logger.warning(
                f"Items sold check failed for {self.date}. Calculated items sold "
                f"({self.items_sold_calculated}) does not equal items sold on receipt ({self.items_sold_on_receipt})."
            )
        return CheckResult('items_sold', passed, self.items_sold_calculated, self.items_sold_on_receipt)

    def total_check(self) -> CheckResult:
        calculated = round_cents(self.total_calculated + self.tax)
        on_receipt = round_cents(self.total)
        passed = calculated == on_receipt
        if not passed:
            logger.warning(
                f"Total check failed for {self.date}. Calculated spend (${calculated}) "
                f"doesn't equal total on receipt (${on_receipt})."
            )
        return CheckResult('total', passed, calculated, on_receipt)

    def correctness_checks(self) -> ReceiptChecks:
        """Run both post-parse checks; failures are reported, never raised"""
        return ReceiptChecks(items_sold=self.items_sold_check(), total=self.total_check())
