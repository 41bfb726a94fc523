#!/usr/bin/env python3
"""
Transaction Parser - Parse single-line Costco transactions

A typical line looks like: 1204135 ORG FIRM TO 6.49
The digits at the start are the item identifier, everything up to the
dollar amount is the item name. Two wrinkles are handled here:

- Spacing fixes: some item names end in a package size that runs into the
  price ("CHAMPAGNE 7503.99"). Known names get a space forced after them.
- Slash-merged identifiers: "294721 /12041352.00-" carries the discount's own
  identifier, then the purchase identifier glued to (or spaced from) the amount.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from .amount_parser import AmountParseError, parse_amount
from .identity_resolver import ItemIdentityIndex, ItemIdentityResolver
from .models import Transaction
from .multiline_assembler import strip_identifier
from .patterns import ReceiptPatterns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedLine:
    amount: Decimal
    raw_name: str
    raw_identifier: str


class TransactionParser:
    """Turn a single transaction line into a resolved Transaction"""

    def __init__(self, patterns: Optional[ReceiptPatterns] = None,
                 resolver: Optional[ItemIdentityResolver] = None):
        self.patterns = patterns or ReceiptPatterns()
        self.resolver = resolver or ItemIdentityResolver(self.patterns.tax_exempt_codes)

    def apply_spacing_fixes(self, line: str) -> str:
        """Force a space after known names whose digits would merge with the price"""
        for name in self.patterns.spacing_fixes:
            index = line.find(name)
            if index < 0:
                continue
            end = index + len(name)
            if end < len(line) and not line[end].isspace():
                logger.debug(f"Separating {name!r} from the amount in {line!r}")
                line = f"{line[:end]} {line[end:]}"
        return line

    def parse(self, line: str) -> ParsedLine:
        """
        Split a transaction line into amount, name and raw identifier

        Raises:
            AmountParseError: If the line has no transaction shape or a bad amount
        """
        line = self.apply_spacing_fixes(line)
        match = self.patterns.transaction.search(line)
        if not match:
            raise AmountParseError(f"Not a transaction line: {line!r}")

        raw_identifier = f"{match.group('code') or ''}{match.group('identifier')}"
        return ParsedLine(
            amount=parse_amount(match.group('amount')),
            raw_name=match.group('name'),
            raw_identifier=raw_identifier,
        )

    def split_slash_merged(self, line: str, index: ItemIdentityIndex) -> Optional[Tuple[str, str, Decimal]]:
        """
        Find the purchase identifier at the start of the text after a slash

        Every known purchase identifier that is a prefix of the merged text, with
        an amount as the remainder (surrounding spaces ignored), is a candidate. The longest one wins;
        equal lengths keep first-seen order.

        Returns:
            Tuple of (own_identifier, purchase_identifier, amount) or None
        """
        match = self.patterns.slash_merged.match(line)
        if not match:
            return None

        merged = match.group('merged').rstrip()
        best = None
        for purchase_identifier in index.purchase_identifiers():
            if not purchase_identifier or not merged.startswith(purchase_identifier):
                continue
            remainder = merged[len(purchase_identifier):].strip()
            if not self.patterns.amount_only.fullmatch(remainder):
                continue
            if best is None or len(purchase_identifier) > len(best[0]):
                best = (purchase_identifier, remainder)

        if best is None:
            return None

        own_identifier = strip_identifier(f"{match.group('code') or ''}{match.group('identifier')}")
        purchase_identifier, remainder = best
        return own_identifier, purchase_identifier, parse_amount(remainder)

    def parse_and_resolve(self, line: str, index: ItemIdentityIndex) -> Transaction:
        """
        Parse a single-line transaction and resolve its identity

        Raises:
            AmountParseError: If the line cannot be parsed
        """
        if '/' in line:
            merged = self.split_slash_merged(line, index)
            if merged:
                own_identifier, purchase_identifier, amount = merged
                index.purchase_identifier_by_discount_identifier[own_identifier] = purchase_identifier
                logger.debug(f"Slash-merged discount {own_identifier} -> {purchase_identifier}")
                return self.resolver.discount_for(purchase_identifier, amount, index)

        parsed = self.parse(line)
        return self.resolver.resolve(parsed.amount, parsed.raw_name, parsed.raw_identifier, index)
